"""Conversational assistant that proposes full replacement HTML/CSS for the scene."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from motiongen.models.code_state import CodeState
from motiongen.utils.config import settings
from motiongen.utils.openai_client import get_openai_client

logger = logging.getLogger(__name__)

FALLBACK_EXPLANATION = "Updated the visual code."

SYSTEM_PROMPT = """You are an expert motion graphics designer and front-end engineer.
You create fluid animations using only HTML and CSS.

You are editing a single canvas. Its current code is:

HTML:
{html}

CSS:
{css}

Rules:
1. Whenever the user asks to change the animation, visuals or layout, call the `update_code` tool.
2. Always send the COMPLETE HTML and/or CSS for each part you change. Never send diffs.
3. Animations play exactly once: give every animated rule an explicit duration and delay
   and use `forwards` fill so the final frame holds.
4. Prefer gradients, shadows and smooth easing (cubic-bezier curves).
5. Do not write JavaScript. Use CSS keyframes and transitions only.
"""

UPDATE_CODE_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "update_code",
        "description": (
            "Replace the HTML and/or CSS of the motion graphic. Always provide the FULL new code "
            "for each part you change."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "html": {"type": "string", "description": "The complete HTML placed inside <body>."},
                "css": {"type": "string", "description": "The complete stylesheet."},
                "explanation": {"type": "string", "description": "A short summary of the changes."},
            },
            "required": ["explanation"],
        },
    },
}

_FENCE_RE = re.compile(r"```(html|css)\s*\n(.*?)```", re.DOTALL | re.IGNORECASE)


class AssistantError(RuntimeError):
    """The assistant could not produce a usable reply."""


@dataclass
class AssistantReply:
    explanation: str
    html: Optional[str] = None
    css: Optional[str] = None

    @property
    def has_code_update(self) -> bool:
        return self.html is not None or self.css is not None


def build_messages(
    prompt: str, current_code: CodeState, history: Optional[List[Dict[str, str]]] = None
) -> List[Dict[str, str]]:
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT.format(html=current_code.html, css=current_code.css)}
    ]
    messages.extend(history or [])
    messages.append({"role": "user", "content": prompt})
    return messages


def _reply_from_tool_arguments(raw: str) -> AssistantReply:
    try:
        args = json.loads(raw or "{}")
    except json.JSONDecodeError as exc:
        raise AssistantError(f"Malformed update_code arguments: {exc}") from exc
    if not isinstance(args, dict):
        raise AssistantError("update_code arguments must be an object")
    return AssistantReply(
        explanation=args.get("explanation") or FALLBACK_EXPLANATION,
        html=args.get("html"),
        css=args.get("css"),
    )


def _reply_from_text(content: str) -> AssistantReply:
    """Plain-text answer; fenced ```html/```css blocks are taken as code updates."""
    found: Dict[str, str] = {}
    for lang, body in _FENCE_RE.findall(content):
        found.setdefault(lang.lower(), body.strip())
    if not found:
        return AssistantReply(explanation=content.strip())
    explanation = _FENCE_RE.sub("", content).strip() or FALLBACK_EXPLANATION
    return AssistantReply(explanation=explanation, html=found.get("html"), css=found.get("css"))


class AssistantService:
    def __init__(self, client: Any = None, model: Optional[str] = None) -> None:
        self._client = client
        self.model = model or settings.openai_model

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    def send(
        self,
        prompt: str,
        current_code: CodeState,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> AssistantReply:
        """Ask for a change. Code in the reply, if any, is a full replacement."""
        try:
            client = self._get_client()
            response = client.chat.completions.create(
                model=self.model,
                messages=build_messages(prompt, current_code, history),
                tools=[UPDATE_CODE_TOOL],
                temperature=0.7,
            )
        except Exception as exc:
            logger.exception("Assistant request failed")
            raise AssistantError(str(exc)) from exc

        if not response.choices:
            raise AssistantError("Assistant returned no choices")
        message = response.choices[0].message
        for call in message.tool_calls or []:
            if call.function.name == "update_code":
                return _reply_from_tool_arguments(call.function.arguments)
            logger.warning("Ignoring unknown tool call: %s", call.function.name)
        return _reply_from_text(message.content or "")
