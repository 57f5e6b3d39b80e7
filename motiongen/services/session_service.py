"""Session persistence and conversation orchestration."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession

from motiongen.db_models import EditorSessionRecord, Message
from motiongen.editor_session import EditorSession
from motiongen.models.code_state import INITIAL_CSS, INITIAL_HTML, CodeState
from motiongen.services.assistant_service import AssistantError, AssistantReply, AssistantService

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Scene"
FAILURE_PREFIX = "Sorry, I couldn't update the animation"

# chat roles as stored -> roles the completion API understands
_HISTORY_ROLES = {"user": "user", "ai": "assistant"}


def create_session(db: DbSession, title: str | None = None, orientation: str = "landscape") -> EditorSessionRecord:
    record = EditorSessionRecord(
        title=title or DEFAULT_TITLE,
        html=INITIAL_HTML,
        css=INITIAL_CSS,
        orientation=orientation,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def get_session(db: DbSession, session_id: UUID | str) -> EditorSessionRecord | None:
    if isinstance(session_id, str):
        try:
            session_id = UUID(session_id)
        except ValueError:
            return None
    return db.get(EditorSessionRecord, session_id)


def save_code(db: DbSession, record: EditorSessionRecord, code: CodeState) -> EditorSessionRecord:
    if record.html == code.html and record.css == code.css:
        return record
    record.html = code.html
    record.css = code.css
    db.commit()
    db.refresh(record)
    return record


def add_message(db: DbSession, session_id: UUID, role: str, content: str) -> Message:
    message = Message(session_id=session_id, role=role, content=content)
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def list_messages(db: DbSession, session_id: UUID) -> List[Message]:
    return list(db.execute(select(Message).where(Message.session_id == session_id).order_by(Message.created_at)).scalars())


def _history(messages: List[Message]) -> List[Dict[str, str]]:
    return [
        {"role": _HISTORY_ROLES[m.role], "content": m.content}
        for m in messages
        if m.role in _HISTORY_ROLES
    ]


def start_exchange(db: DbSession, record: EditorSessionRecord, content: str) -> List[Dict[str, str]]:
    """Store the user turn and return the chat history that preceded it."""
    history = _history(list_messages(db, record.id))
    add_message(db, record.id, "user", content)
    return history


def fail_exchange(db: DbSession, record: EditorSessionRecord, exc: AssistantError) -> Dict[str, Any]:
    logger.warning("Assistant failed for session %s: %s", record.id, exc)
    notice = add_message(db, record.id, "system", f"{FAILURE_PREFIX}: {exc}")
    return {"role": notice.role, "content": notice.content, "code_updated": False, "error": str(exc)}


def finish_exchange(
    db: DbSession, record: EditorSessionRecord, live: EditorSession, reply: AssistantReply
) -> Dict[str, Any]:
    """Apply any code the assistant returned and store its explanation."""
    if reply.has_code_update:
        live.apply_assistant_update(reply.html, reply.css)
        save_code(db, record, live.code)
    answer = add_message(db, record.id, "ai", reply.explanation)
    return {
        "role": answer.role,
        "content": answer.content,
        "code_updated": reply.has_code_update,
        "error": None,
    }


def handle_message(
    db: DbSession,
    record: EditorSessionRecord,
    live: EditorSession,
    content: str,
    assistant: Optional[AssistantService] = None,
) -> Dict[str, Any]:
    """Send ``content`` to the assistant and apply any code it returns.

    On failure a system message is stored and the scene code is left as it was.
    """
    history = start_exchange(db, record, content)
    assistant = assistant or AssistantService()
    try:
        reply = assistant.send(content, live.code, history)
    except AssistantError as exc:
        return fail_exchange(db, record, exc)
    return finish_exchange(db, record, live, reply)


class SessionRegistry:
    """Live ``EditorSession`` objects keyed by persisted session id.

    The database holds the code; the live session holds playback and drag state
    for as long as the process runs.
    """

    def __init__(self) -> None:
        self._live: Dict[str, EditorSession] = {}

    def open(self, record: EditorSessionRecord) -> EditorSession:
        key = str(record.id)
        live = self._live.get(key)
        if live is None or live.closed:
            live = EditorSession(
                key,
                code=CodeState(html=record.html or "", css=record.css or ""),
                orientation=record.orientation if record.orientation in ("landscape", "portrait") else "landscape",
            )
            self._live[key] = live
            logger.debug("Opened live session %s", key)
        return live

    def get(self, session_id: str) -> Optional[EditorSession]:
        return self._live.get(str(session_id))

    def close(self, session_id: str) -> None:
        live = self._live.pop(str(session_id), None)
        if live is not None:
            live.close()

    def close_all(self) -> None:
        for key in list(self._live):
            self.close(key)

    def __len__(self) -> int:
        return len(self._live)
