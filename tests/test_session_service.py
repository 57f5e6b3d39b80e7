from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from motiongen.db import Base
from motiongen.models.code_state import INITIAL_CSS, CodeState
from motiongen.services import session_service
from motiongen.services.assistant_service import AssistantError, AssistantReply


class FakeAssistant:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def send(self, prompt, current_code, history=None):
        self.calls.append((prompt, current_code, history))
        if self.error:
            raise self.error
        return self.reply


def _db():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    return SessionLocal()


def test_create_and_get_session():
    with _db() as db:
        record = session_service.create_session(db, title="Intro", orientation="portrait")
        assert record.css == INITIAL_CSS
        assert session_service.get_session(db, str(record.id)).title == "Intro"
        assert session_service.get_session(db, "not-a-uuid") is None


def test_save_code_persists_changes():
    with _db() as db:
        record = session_service.create_session(db)
        session_service.save_code(db, record, CodeState(html="<p></p>", css=".p { animation: x 1s; }"))
        reloaded = session_service.get_session(db, record.id)
        assert reloaded.css == ".p { animation: x 1s; }"
        assert reloaded.html == "<p></p>"


def test_timestamps_are_set_and_advance_on_save():
    with _db() as db:
        record = session_service.create_session(db)
        session_service.add_message(db, record.id, "user", "hello")
        created = session_service.get_session(db, record.id)
        assert created.created_at is not None
        first_update = created.updated_at
        session_service.save_code(db, record, CodeState(html="", css=".a { animation: x 2s; }"))
        assert session_service.get_session(db, record.id).updated_at >= first_update
        assert session_service.list_messages(db, record.id)[0].created_at is not None


def test_handle_message_applies_update_and_records_chat():
    assistant = FakeAssistant(AssistantReply(explanation="Made it slower.", css=".a { animation: x 4s; }"))
    registry = session_service.SessionRegistry()
    with _db() as db:
        record = session_service.create_session(db)
        live = registry.open(record)
        result = session_service.handle_message(db, record, live, "slower please", assistant=assistant)

        assert result["code_updated"] is True
        assert result["content"] == "Made it slower."
        assert live.code.css == ".a { animation: x 4s; }"
        assert live.playback.is_playing
        assert session_service.get_session(db, record.id).css == ".a { animation: x 4s; }"
        assert [m.role for m in session_service.list_messages(db, record.id)] == ["user", "ai"]

        session_service.handle_message(db, record, live, "thanks", assistant=assistant)
        _, _, history = assistant.calls[-1]
        assert history == [
            {"role": "user", "content": "slower please"},
            {"role": "assistant", "content": "Made it slower."},
        ]
    registry.close_all()


def test_handle_message_failure_keeps_code():
    assistant = FakeAssistant(error=AssistantError("rate limited"))
    registry = session_service.SessionRegistry()
    with _db() as db:
        record = session_service.create_session(db)
        live = registry.open(record)
        before = live.code
        result = session_service.handle_message(db, record, live, "make it pop", assistant=assistant)

        assert result["error"] == "rate limited"
        assert result["role"] == "system"
        assert live.code == before
        assert session_service.get_session(db, record.id).css == INITIAL_CSS
        roles = [m.role for m in session_service.list_messages(db, record.id)]
        assert roles == ["user", "system"]


def test_registry_reuses_live_sessions():
    registry = session_service.SessionRegistry()
    with _db() as db:
        record = session_service.create_session(db)
        first = registry.open(record)
        assert registry.open(record) is first
        assert len(registry) == 1
        registry.close(str(record.id))
        assert first.closed
        assert registry.get(str(record.id)) is None
        assert registry.open(record) is not first
