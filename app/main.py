"""Process entrypoint for hosting shims.

The trigger app is built once per process on first use and reused by every
invocation that process serves.
"""

import asyncio
from typing import Any, Dict, Optional

from app.core.app_factory import TriggerApp, create_app
from app.core.events import ChangeEvent

_app: Optional[TriggerApp] = None


def get_app() -> TriggerApp:
    global _app
    if _app is None:
        _app = create_app()
    return _app


def handle_event(
    path: str,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
    event_id: Optional[str] = None,
):
    """Deliver one document change to every matching trigger."""
    return asyncio.run(get_app().dispatch(path, before=before, after=after, event_id=event_id))


def run_trigger(
    name: str,
    path: str,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
    event_id: Optional[str] = None,
):
    """Run one named trigger, for platforms that deploy each trigger separately."""
    fields: Dict[str, Any] = {"before": before, "after": after}
    if event_id:
        fields["event_id"] = event_id
    return asyncio.run(get_app().invoke(name, ChangeEvent(**fields), path=path))
