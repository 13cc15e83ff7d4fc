"""System messages handed back to the narration layer.

Every message this core produces is a ``SystemMessage``. The narration
layer reads ``content`` as ground truth on its next turn; ``metadata``
carries structured data (rolls, enemy ids) for the transcript view.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _message_id() -> str:
    return f"msg_{uuid4().hex[:12]}"


class SystemMessage(BaseModel):
    """A system-role transcript message.

    Attributes:
        id: Unique message identifier.
        role: Always ``system``.
        content: Display text.
        timestamp: Creation time.
        hidden: Whether the transcript view should hide the message.
        metadata: Structured context (rolls, enemy ids, error details).
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=_message_id)
    role: Literal["system"] = "system"
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)
    hidden: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


def system_message(content: str, *, hidden: bool = False, **metadata: Any) -> SystemMessage:
    """Build a system message with keyword metadata."""
    return SystemMessage(content=content, hidden=hidden, metadata=metadata)


__all__ = [
    "SystemMessage",
    "system_message",
]
