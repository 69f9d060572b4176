"""Change-event routing for document triggers."""

from .models import ChangeEvent, EventKind, infer_kind
from .router import ChangeEventRouter, DispatchResult, TriggerRoute, compile_path_pattern

__all__ = [
    "ChangeEvent",
    "ChangeEventRouter",
    "DispatchResult",
    "EventKind",
    "TriggerRoute",
    "compile_path_pattern",
    "infer_kind",
]
