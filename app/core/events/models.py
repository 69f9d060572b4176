"""Change-event envelope delivered to trigger handlers."""

from __future__ import annotations

import enum
import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    # matches any of the above
    WRITTEN = "written"

    def accepts(self, other: "EventKind") -> bool:
        return self is other or self is EventKind.WRITTEN


def infer_kind(before: Optional[Dict[str, Any]], after: Optional[Dict[str, Any]]) -> EventKind:
    if before is None and after is not None:
        return EventKind.CREATED
    if after is None:
        return EventKind.DELETED
    return EventKind.UPDATED


class ChangeEvent(BaseModel):
    """Before/after snapshot of one document plus the wildcards matched from its path.

    Creation events carry only `after`; deletions carry only `before`. The hosting
    platform delivers at least once, so the same `event_id` may arrive again.
    """

    model_config = ConfigDict(frozen=True)

    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    params: Dict[str, str] = Field(default_factory=dict)
    document_path: Optional[str] = None
    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def kind(self) -> EventKind:
        return infer_kind(self.before, self.after)

    def param(self, name: str) -> Optional[str]:
        return self.params.get(name)

    def with_params(self, params: Dict[str, str], document_path: str) -> "ChangeEvent":
        return self.model_copy(update={"params": dict(params), "document_path": document_path})


__all__ = ["ChangeEvent", "EventKind", "infer_kind"]
