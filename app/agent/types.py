"""
Conversation types shared by memory, the agent loop and the reasoning client.

A Turn renders itself to the chat-completions wire format only in
`to_message()`; everything upstream works with the typed fields.
"""
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field, asdict
from enum import Enum
import json


class TurnRole(str, Enum):
    """Role of one conversation turn"""
    INSTRUCTION = "instruction"
    USER = "user"
    ASSISTANT = "assistant"
    ASSISTANT_TOOL_REQUESTS = "assistant-with-tool-requests"
    TOOL_RESULT = "tool-result"
    SYSTEM_NOTE = "system-note"


@dataclass
class ToolRequest:
    """One tool invocation requested by the reasoning service"""
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    # Argument text the service sent when it was not a JSON object
    raw_arguments: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        if self.raw_arguments is not None:
            arguments = self.raw_arguments
        else:
            arguments = json.dumps(self.arguments, ensure_ascii=False)
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": arguments},
        }


@dataclass
class MemoryEvent:
    """A mutation that happened outside the agent (e.g. a direct CRUD edit)"""
    action: str
    employee: Dict[str, Any] = field(default_factory=dict)
    source: str = "dashboard"

    def render(self) -> str:
        details = json.dumps(self.employee, ensure_ascii=False, default=str)
        return (
            f"Note: an employee record was {self.action} directly via the {self.source}, "
            f"outside this conversation. Record: {details}"
        )


@dataclass
class Turn:
    """One unit of conversation"""
    role: TurnRole
    content: str = ""
    tool_requests: List[ToolRequest] = field(default_factory=list)
    correlates_to: Optional[str] = None
    event: Optional[MemoryEvent] = None

    # ─── Constructors ────────────────────────────────────────────────────

    @classmethod
    def instruction(cls, text: str) -> "Turn":
        return cls(role=TurnRole.INSTRUCTION, content=text)

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(role=TurnRole.USER, content=text)

    @classmethod
    def assistant(cls, text: str) -> "Turn":
        return cls(role=TurnRole.ASSISTANT, content=text)

    @classmethod
    def tool_requests_turn(cls, requests: List[ToolRequest], text: str = "") -> "Turn":
        return cls(role=TurnRole.ASSISTANT_TOOL_REQUESTS, content=text, tool_requests=list(requests))

    @classmethod
    def tool_result(cls, request_id: str, text: str) -> "Turn":
        return cls(role=TurnRole.TOOL_RESULT, content=text, correlates_to=request_id)

    @classmethod
    def note(cls, note) -> "Turn":
        if isinstance(note, MemoryEvent):
            return cls(role=TurnRole.SYSTEM_NOTE, event=note)
        return cls(role=TurnRole.SYSTEM_NOTE, content=str(note))

    # ─── Rendering ───────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        """Content as the reasoning service reads it"""
        if self.event is not None:
            return self.event.render()
        return self.content

    def to_message(self) -> Dict[str, Any]:
        """Render as a chat-completions message"""
        if self.role in (TurnRole.INSTRUCTION, TurnRole.SYSTEM_NOTE):
            return {"role": "system", "content": self.text}
        if self.role == TurnRole.USER:
            return {"role": "user", "content": self.content}
        if self.role == TurnRole.ASSISTANT_TOOL_REQUESTS:
            return {
                "role": "assistant",
                "content": self.content or None,
                "tool_calls": [r.to_wire() for r in self.tool_requests],
            }
        if self.role == TurnRole.TOOL_RESULT:
            return {"role": "tool", "tool_call_id": self.correlates_to, "content": self.content}
        return {"role": "assistant", "content": self.content}

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly form for API responses"""
        return {
            "role": self.role.value,
            "content": self.text,
            "tool_requests": [asdict(r) for r in self.tool_requests],
            "correlates_to": self.correlates_to,
            "event": asdict(self.event) if self.event else None,
        }
