"""Request-side triggers."""

from .sync import MIRROR_FIELD, StatusSyncPropagator

__all__ = ["MIRROR_FIELD", "StatusSyncPropagator"]
