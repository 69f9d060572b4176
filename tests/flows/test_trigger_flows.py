"""End-to-end trigger flows through the router with in-memory collaborators."""
import pytest

from app import main
from app.core.app_factory import NOTIFY_NEW_MESSAGE, NOTIFY_REQUEST_STATUS, create_app
from app.core.events import ChangeEvent
from app.core.exceptions import SyncCommitFailureException


@pytest.fixture
def trigger_app(test_settings, seeded_store, sender):
    return create_app(test_settings, store=seeded_store, sender=sender, configure_logging=False)


@pytest.mark.asyncio
async def test_request_accepted_notifies_and_syncs(trigger_app, seeded_store, sender):
    results = await trigger_app.dispatch(
        "requests/r1",
        before={"status": "requested", "userId": "u1"},
        after={"status": "accepted", "userId": "u1"},
        event_id="evt-accept",
    )
    by_trigger = {result.trigger: result.result for result in results}
    assert by_trigger == {"notifyRequestStatus": 1, "syncRequestStatusToConversations": 1}
    assert len(sender.sent) == 1
    assert sender.sent[0].target == "tok1"
    assert sender.sent[0].data["type"] == "request_accepted"
    assert sender.sent[0].data["requestId"] == "r1"
    assert seeded_store.fields("conversations/c1")["requestStatus"] == "accepted"


@pytest.mark.asyncio
async def test_new_message_fans_out_to_other_participant(trigger_app, sender):
    results = await trigger_app.dispatch(
        "conversations/c1/messages/m1",
        after={"senderId": "u1", "text": "q" * 120},
    )
    assert [result.trigger for result in results] == ["notifyNewMessage"]
    assert len(sender.sent) == 1
    payload = sender.sent[0]
    assert payload.target == "tok2"
    assert "Alice" in payload.title
    assert len(payload.body) == 100
    assert payload.body.endswith("...")


@pytest.mark.asyncio
async def test_message_update_does_not_fan_out(trigger_app, sender):
    results = await trigger_app.dispatch(
        "conversations/c1/messages/m1",
        before={"senderId": "u1", "text": "a"},
        after={"senderId": "u1", "text": "b"},
    )
    assert results == []
    assert sender.sent == []


@pytest.mark.asyncio
async def test_status_rewrite_without_transition_only_syncs(trigger_app, seeded_store, sender):
    seeded_store.set("conversations/c1", {"participants": ["u1", "u2"], "requestId": "r1", "requestStatus": "stale"})
    await trigger_app.dispatch(
        "requests/r1",
        before={"status": "accepted", "userId": "u1"},
        after={"status": "accepted", "userId": "u1", "eta": 5},
    )
    assert sender.sent == []
    assert seeded_store.fields("conversations/c1")["requestStatus"] == "accepted"


@pytest.mark.asyncio
async def test_sync_failure_reaches_platform_after_notification(trigger_app, seeded_store, sender):
    seeded_store.fail_commit = RuntimeError("aborted")
    with pytest.raises(SyncCommitFailureException):
        await trigger_app.dispatch(
            "requests/r1",
            before={"status": "requested", "userId": "u1"},
            after={"status": "accepted", "userId": "u1"},
        )
    # the notifier ran independently of the failed sync
    assert len(sender.sent) == 1


@pytest.mark.asyncio
async def test_malformed_request_still_syncs(trigger_app, seeded_store, sender):
    results = await trigger_app.dispatch(
        "requests/r1",
        before={"status": "requested", "userId": 7},
        after={"status": "accepted", "userId": 7},
    )
    assert all(result.ok for result in results)
    assert sender.sent == []
    assert seeded_store.fields("conversations/c1")["requestStatus"] == "accepted"


@pytest.mark.asyncio
async def test_invoke_single_trigger(trigger_app, sender, seeded_store):
    event = ChangeEvent(
        before={"status": "accepted", "userId": "u1"},
        after={"status": "picked_up", "userId": "u1", "diningHall": "D2"},
    )
    assert await trigger_app.invoke(NOTIFY_REQUEST_STATUS, event, path="requests/r1") == 1
    assert sender.sent[0].body == "Your food has been picked up from D2!"
    # sync trigger was not invoked
    assert seeded_store.fields("conversations/c1")["requestStatus"] == "requested"


def test_main_helpers_reuse_process_app(monkeypatch, trigger_app, sender):
    monkeypatch.setattr(main, "_app", None)
    monkeypatch.setattr(main, "create_app", lambda: trigger_app)
    assert main.get_app() is trigger_app
    assert main.get_app() is trigger_app

    results = main.handle_event(
        "conversations/c1/messages/m2", after={"senderId": "u2", "text": "on my way"}
    )
    assert [result.trigger for result in results] == [NOTIFY_NEW_MESSAGE]
    assert sender.targets() == ["tok1"]

    outcome = main.run_trigger(
        NOTIFY_NEW_MESSAGE,
        "conversations/c1/messages/m3",
        after={"senderId": "u1", "text": ""},
        event_id="evt-3",
    )
    assert outcome.sent == ["u2"]
    assert sender.sent[-1].body == "New message"
