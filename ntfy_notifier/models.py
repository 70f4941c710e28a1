from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Notification:
    """Mensaje push para ntfy (formato JSON de publicación)."""

    topic: str
    title: str
    message: str

    priority: Optional[int] = None
    attach: Optional[str] = None
    filename: Optional[str] = None
    click: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "topic": self.topic,
            "title": self.title,
            "message": self.message,
        }
        optional = {
            "priority": self.priority,
            "attach": self.attach,
            "filename": self.filename,
            "click": self.click,
            "tags": list(self.tags),
        }
        payload.update({k: v for k, v in optional.items() if v})
        return payload
