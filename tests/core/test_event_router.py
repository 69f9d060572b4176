"""Tests for change-event routing."""
import logging

import pytest

from app.core.events import ChangeEvent, ChangeEventRouter, EventKind, compile_path_pattern, infer_kind
from app.core.exceptions import (
    DuplicateTriggerException,
    InvalidPathPatternException,
    RouteNotFoundException,
)
from app.core.logging_config import event_id_ctx, trigger_ctx


def test_compile_path_pattern_extracts_params():
    regex = compile_path_pattern("conversations/{conversationId}/messages/{messageId}")
    match = regex.match("conversations/c1/messages/m1")
    assert match.groupdict() == {"conversationId": "c1", "messageId": "m1"}
    assert regex.match("conversations/c1") is None
    assert regex.match("conversations/c1/messages/m1/extra/x") is None


@pytest.mark.parametrize(
    "pattern",
    ["requests", "requests//{id}", "requests/{id}/{id}/x", "requests/{bad-name}", "a/{x"],
)
def test_compile_path_pattern_rejects_bad_patterns(pattern):
    with pytest.raises(InvalidPathPatternException):
        compile_path_pattern(pattern)


def test_infer_kind():
    assert infer_kind(None, {"a": 1}) is EventKind.CREATED
    assert infer_kind({"a": 1}, {"a": 2}) is EventKind.UPDATED
    assert infer_kind({"a": 1}, None) is EventKind.DELETED


def test_written_accepts_every_kind():
    for kind in (EventKind.CREATED, EventKind.UPDATED, EventKind.DELETED):
        assert EventKind.WRITTEN.accepts(kind)
    assert not EventKind.CREATED.accepts(EventKind.UPDATED)


def test_duplicate_registration_rejected():
    router = ChangeEventRouter()

    async def handler(event):
        return None

    router.register("t", "requests/{requestId}", EventKind.UPDATED, handler)
    with pytest.raises(DuplicateTriggerException):
        router.register("t", "requests/{requestId}", EventKind.UPDATED, handler)
    assert len(router.routes) == 1


@pytest.mark.asyncio
async def test_dispatch_routes_by_path_and_kind():
    router = ChangeEventRouter()
    seen = []

    @router.on("onRequestUpdate", "requests/{requestId}", EventKind.UPDATED)
    async def on_update(event):
        seen.append(("update", event.param("requestId"), event.document_path))
        return "updated"

    @router.on("onRequestCreate", "requests/{requestId}", EventKind.CREATED)
    async def on_create(event):
        seen.append(("create", event.param("requestId"), event.document_path))
        return "created"

    results = await router.dispatch("requests/r1", before={"status": "a"}, after={"status": "b"})
    assert [r.trigger for r in results] == ["onRequestUpdate"]
    assert results[0].result == "updated"
    assert results[0].ok
    assert seen == [("update", "r1", "requests/r1")]

    await router.dispatch("requests/r2", after={"status": "a"})
    assert seen[-1] == ("create", "r2", "requests/r2")


@pytest.mark.asyncio
async def test_dispatch_without_match_returns_empty(caplog):
    router = ChangeEventRouter()
    with caplog.at_level(logging.INFO, logger="app.core.events.router"):
        assert await router.dispatch("users/u1", after={"name": "x"}) == []
    assert "No trigger matches" in caplog.text


@pytest.mark.asyncio
async def test_dispatch_runs_all_handlers_then_reraises_first_failure():
    router = ChangeEventRouter()
    ran = []

    async def boom(event):
        ran.append("boom")
        raise RuntimeError("commit failed")

    async def fine(event):
        ran.append("fine")
        return 1

    router.register("a", "requests/{requestId}", EventKind.UPDATED, boom)
    router.register("b", "requests/{requestId}", EventKind.UPDATED, fine)
    with pytest.raises(RuntimeError, match="commit failed"):
        await router.dispatch("requests/r1", before={}, after={"status": "x"})
    assert sorted(ran) == ["boom", "fine"]


@pytest.mark.asyncio
async def test_invoke_binds_logging_context_and_resets_it():
    router = ChangeEventRouter()
    captured = {}

    async def handler(event):
        captured["event_id"] = event_id_ctx.get()
        captured["trigger"] = trigger_ctx.get()
        return "done"

    router.register("ctx", "requests/{requestId}", EventKind.UPDATED, handler)
    event = ChangeEvent(before={}, after={"status": "x"}, event_id="evt-1")
    assert await router.invoke("ctx", event, path="requests/r1") == "done"
    assert captured == {"event_id": "evt-1", "trigger": "ctx"}
    assert event_id_ctx.get() is None
    assert trigger_ctx.get() is None


@pytest.mark.asyncio
async def test_invoke_unknown_trigger():
    with pytest.raises(RouteNotFoundException):
        await ChangeEventRouter().invoke("missing", ChangeEvent(after={}))


@pytest.mark.asyncio
async def test_invoke_path_mismatch_returns_none():
    router = ChangeEventRouter()

    async def handler(event):
        raise AssertionError("should not run")

    router.register("t", "requests/{requestId}", EventKind.UPDATED, handler)
    assert await router.invoke("t", ChangeEvent(before={}, after={}), path="users/u1") is None


@pytest.mark.asyncio
async def test_invoke_propagates_handler_error():
    router = ChangeEventRouter()

    async def handler(event):
        raise ValueError("bad")

    router.register("t", "requests/{requestId}", EventKind.UPDATED, handler)
    with pytest.raises(ValueError):
        await router.invoke("t", ChangeEvent(before={}, after={}), path="requests/r1")


def test_change_event_defaults():
    event = ChangeEvent(after={"a": 1})
    assert event.kind is EventKind.CREATED
    assert event.params == {}
    assert event.event_id
    assert event.param("x") is None
