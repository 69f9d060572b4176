"""Route document change events to registered trigger handlers.

Each trigger is registered exactly once, under a unique name, against a Firestore-style
path pattern such as ``requests/{requestId}``. Wildcard segments become the event's
``params``. Dispatch binds logging context for the duration of each handler call and
times it, so every log line a handler emits carries the event id and trigger name.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Pattern

from app.core.exceptions import (
    DuplicateTriggerException,
    InvalidPathPatternException,
    RouteNotFoundException,
)
from app.core.logging_config import bind_event_context, reset_event_context

from .models import ChangeEvent, EventKind

logger = logging.getLogger(__name__)

Handler = Callable[[ChangeEvent], Awaitable[Any]]

_WILDCARD = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")


def compile_path_pattern(pattern: str) -> Pattern[str]:
    """Compile ``a/{x}/b/{y}`` into an anchored regex with one named group per wildcard."""
    segments = pattern.strip("/").split("/")
    if not segments or any(not segment for segment in segments):
        raise InvalidPathPatternException(pattern, "empty path segment")
    if len(segments) % 2:
        raise InvalidPathPatternException(pattern, "must address a document, not a collection")

    parts = []
    seen = set()
    for segment in segments:
        match = _WILDCARD.match(segment)
        if match:
            name = match.group(1)
            if name in seen:
                raise InvalidPathPatternException(pattern, f"duplicate wildcard {name}")
            seen.add(name)
            parts.append(f"(?P<{name}>[^/]+)")
        elif "{" in segment or "}" in segment:
            raise InvalidPathPatternException(pattern, f"malformed segment {segment!r}")
        else:
            parts.append(re.escape(segment))
    return re.compile("^" + "/".join(parts) + "$")


@dataclass(frozen=True)
class TriggerRoute:
    name: str
    pattern: str
    kind: EventKind
    handler: Handler
    regex: Pattern[str]

    def match(self, kind: EventKind, path: str) -> Optional[Dict[str, str]]:
        if not self.kind.accepts(kind):
            return None
        found = self.regex.match(path.strip("/"))
        return found.groupdict() if found else None


@dataclass
class DispatchResult:
    trigger: str
    result: Any = None
    error: Optional[BaseException] = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class ChangeEventRouter:
    """Registry of trigger handlers keyed by unique name."""

    def __init__(self):
        self._routes: Dict[str, TriggerRoute] = {}

    @property
    def routes(self) -> List[TriggerRoute]:
        return list(self._routes.values())

    def register(self, name: str, pattern: str, kind: EventKind, handler: Handler) -> TriggerRoute:
        if name in self._routes:
            raise DuplicateTriggerException(name)
        route = TriggerRoute(
            name=name,
            pattern=pattern,
            kind=EventKind(kind),
            handler=handler,
            regex=compile_path_pattern(pattern),
        )
        self._routes[name] = route
        logger.debug("Registered trigger %s on %s (%s)", name, pattern, route.kind.value)
        return route

    def on(self, name: str, pattern: str, kind: EventKind):
        """Decorator form of `register`."""

        def decorator(handler: Handler) -> Handler:
            self.register(name, pattern, kind, handler)
            return handler

        return decorator

    def match(self, kind: EventKind, path: str) -> List[tuple]:
        matches = []
        for route in self._routes.values():
            params = route.match(kind, path)
            if params is not None:
                matches.append((route, params))
        return matches

    async def invoke(self, name: str, event: ChangeEvent, path: Optional[str] = None) -> Any:
        """Run a single named trigger; handler exceptions propagate to the caller."""
        route = self._routes.get(name)
        if route is None:
            raise RouteNotFoundException(name)
        if path is not None:
            params = route.regex.match(path.strip("/"))
            if params is None:
                logger.warning("Path %s does not match trigger %s", path, name)
                return None
            event = event.with_params(params.groupdict(), path)
        outcome = await self._run(route, event)
        if outcome.error is not None:
            raise outcome.error
        return outcome.result

    async def dispatch(
        self,
        path: str,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        event_id: Optional[str] = None,
    ) -> List[DispatchResult]:
        """Deliver one change to every matching trigger.

        Matching handlers run concurrently and independently. After all have
        finished, the first failure is re-raised so the platform can redeliver.
        """
        fields: Dict[str, Any] = {"before": before, "after": after}
        if event_id:
            fields["event_id"] = event_id
        base = ChangeEvent(**fields)
        matches = self.match(base.kind, path)
        if not matches:
            logger.info("No trigger matches %s event on %s", base.kind.value, path)
            return []

        outcomes = await asyncio.gather(
            *(self._run(route, base.with_params(params, path)) for route, params in matches)
        )
        failures = [outcome for outcome in outcomes if outcome.error is not None]
        if failures:
            raise failures[0].error
        return list(outcomes)

    async def _run(self, route: TriggerRoute, event: ChangeEvent) -> DispatchResult:
        tokens = bind_event_context(
            event_id=event.event_id,
            trigger=route.name,
            document_path=event.document_path,
        )
        started = time.perf_counter()
        outcome = DispatchResult(trigger=route.name)
        try:
            outcome.result = await route.handler(event)
        except Exception as exc:
            outcome.error = exc
            logger.exception("Trigger %s failed: %s", route.name, exc)
        finally:
            outcome.duration_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "Trigger %s finished in %.2fms",
                route.name,
                outcome.duration_ms,
                extra={"duration": f"{outcome.duration_ms:.2f}"},
            )
            reset_event_context(tokens)
        return outcome


__all__ = [
    "ChangeEventRouter",
    "DispatchResult",
    "TriggerRoute",
    "compile_path_pattern",
]
