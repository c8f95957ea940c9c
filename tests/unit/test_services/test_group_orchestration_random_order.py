"""Unit tests for the random-order turn orchestrator."""

import random

import pytest

from groupchat.api.models.group_chat import Message, Participant
from groupchat.api.services.group_orchestration import (
    RandomOrderOrchestrator,
    TurnRequest,
    TurnSettings,
)
from groupchat.providers.errors import GenerationError, GenerationFailureKind


class _FixedOrderRandom(random.Random):
    """Keeps roster order so tests can reason about who speaks when."""

    def shuffle(self, x):
        return None


async def _collect_events(async_iter):
    events = []
    async for event in async_iter:
        events.append(event)
    return events


def _start_turn(store, text="hi"):
    store.append_message(Message(sender_id="user-1", content=text))
    return TurnRequest(
        conversation_id=store.conversation_id,
        epoch=store.epoch.value,
        history=store.messages,
    )


def _orchestrator(store, generator, sleep, rng=None):
    return RandomOrderOrchestrator(
        store=store,
        reply_generator=generator,
        sleep=sleep,
        rng=rng or _FixedOrderRandom(),
    )


@pytest.mark.asyncio
async def test_every_persona_replies_once_in_announced_order(store, fake_generator, recording_sleep):
    orchestrator = _orchestrator(store, fake_generator, recording_sleep, rng=random.Random(7))
    request = _start_turn(store)

    events = await _collect_events(orchestrator.stream(request, epoch=store.epoch))

    start = events[0]
    assert start["type"] == "turn_start"
    assert sorted(start["order"]) == ["a", "b", "c"]
    assert fake_generator.called_ids == start["order"]
    assert "user-1" not in fake_generator.called_ids
    assert [m.sender_id for m in store.messages] == ["user-1", *start["order"]]
    assert events[-1] == {"type": "turn_done", "reason": "completed", "replies": 3}


@pytest.mark.asyncio
async def test_order_varies_across_turns(store, fake_generator, recording_sleep):
    orchestrator = _orchestrator(store, fake_generator, recording_sleep, rng=random.Random(1234))
    orders = set()

    for _ in range(30):
        request = _start_turn(store)
        events = await orchestrator.run(request, epoch=store.epoch)
        orders.add(tuple(events[0]["order"]))

    assert len(orders) > 1


@pytest.mark.asyncio
async def test_thinking_delays_stay_within_configured_bounds(store, fake_generator, recording_sleep):
    orchestrator = _orchestrator(store, fake_generator, recording_sleep, rng=random.Random(3))
    request = TurnRequest(
        conversation_id=store.conversation_id,
        epoch=store.epoch.value,
        history=(),
        settings=TurnSettings(thinking_delay_min=1.0, thinking_delay_max=2.5),
    )

    events = await orchestrator.run(request, epoch=store.epoch)

    assert len(recording_sleep.delays) == 3
    assert all(1.0 <= delay <= 2.5 for delay in recording_sleep.delays)
    typing = [e for e in events if e["type"] == "persona_typing"]
    assert [e["persona_id"] for e in typing] == events[0]["order"]


@pytest.mark.asyncio
async def test_each_persona_sees_replies_from_earlier_in_the_turn(store, fake_generator, recording_sleep):
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)
    request = _start_turn(store)

    await orchestrator.run(request, epoch=store.epoch)

    histories = [call["history"] for call in fake_generator.calls]
    assert [m.content for m in histories[0]] == ["hi"]
    assert [m.sender_id for m in histories[1]] == ["user-1", "a"]
    assert [m.sender_id for m in histories[2]] == ["user-1", "a", "b"]


@pytest.mark.asyncio
async def test_reset_during_thinking_delay_stops_turn_before_generation(store, fake_generator, recording_sleep):
    recording_sleep.on_sleep = lambda delay: store.reset_conversation()
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)
    request = _start_turn(store)

    events = await orchestrator.run(request, epoch=store.epoch)

    assert [e["type"] for e in events] == ["turn_start", "persona_typing", "turn_done"]
    assert events[-1]["reason"] == "epoch_changed"
    assert fake_generator.calls == []
    assert store.messages == ()
    assert store.typing_snapshot() == {}


@pytest.mark.asyncio
async def test_reset_during_generation_discards_successful_reply(store, fake_generator, recording_sleep):
    fake_generator.before_return = lambda persona: store.reset_conversation()
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)
    request = _start_turn(store)

    events = await orchestrator.run(request, epoch=store.epoch)

    assert fake_generator.called_ids == ["a"]
    assert store.messages == ()
    assert store.typing_snapshot() == {}
    assert events[-1] == {"type": "turn_done", "reason": "epoch_changed", "replies": 0}
    assert not any(e["type"] == "persona_message" for e in events)


@pytest.mark.asyncio
async def test_stale_request_yields_only_turn_done(store, fake_generator, recording_sleep):
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)
    request = _start_turn(store)
    store.reset_conversation()

    events = await orchestrator.run(request, epoch=store.epoch)

    assert events == [{"type": "turn_done", "reason": "epoch_changed", "replies": 0}]
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_failed_persona_is_reported_and_turn_continues(store, fake_generator, recording_sleep):
    fake_generator.failures["b"] = GenerationError(GenerationFailureKind.RATE_LIMITED, "quota exhausted")
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)
    request = _start_turn(store)

    events = await orchestrator.run(request, epoch=store.epoch)

    errors = [e for e in events if e["type"] == "persona_error"]
    assert errors == [{
        "type": "persona_error",
        "persona_id": "b",
        "kind": "rate_limited",
        "error": "quota exhausted",
    }]
    assert [m.sender_id for m in store.messages] == ["user-1", "a", "c"]
    assert not any(m.is_error for m in store.messages)
    assert events[-1]["replies"] == 2


@pytest.mark.asyncio
async def test_unexpected_exception_is_classified_as_other(store, fake_generator, recording_sleep):
    fake_generator.failures["a"] = RuntimeError("socket closed")
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)
    request = _start_turn(store)

    events = await orchestrator.run(request, epoch=store.epoch)

    error = next(e for e in events if e["type"] == "persona_error")
    assert error["kind"] == "other"
    assert fake_generator.called_ids == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_blank_reply_is_not_appended(store, fake_generator, recording_sleep):
    fake_generator.replies["a"] = "   "
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)
    request = _start_turn(store)

    events = await orchestrator.run(request, epoch=store.epoch)

    error = next(e for e in events if e["type"] == "persona_error")
    assert error["persona_id"] == "a"
    assert error["kind"] == "empty_response"
    assert [m.sender_id for m in store.messages] == ["user-1", "b", "c"]


@pytest.mark.asyncio
async def test_persona_removed_mid_turn_is_skipped(store, fake_generator, recording_sleep):
    def remove_c(persona):
        if persona.id == "a":
            store.remove_participant("c")

    fake_generator.before_return = remove_c
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)
    request = _start_turn(store)

    events = await orchestrator.run(request, epoch=store.epoch)

    assert fake_generator.called_ids == ["a", "b"]
    skipped = [e for e in events if e["type"] == "persona_skipped"]
    assert skipped == [{"type": "persona_skipped", "persona_id": "c", "reason": "removed"}]
    assert events[-1] == {"type": "turn_done", "reason": "completed", "replies": 2}


@pytest.mark.asyncio
async def test_persona_added_mid_turn_waits_for_next_turn(store, fake_generator, recording_sleep):
    def add_d(persona):
        if persona.id == "a":
            store.add_participant(Participant(id="d", name="D", system_instruction="You are D."))

    fake_generator.before_return = add_d
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)

    await orchestrator.run(_start_turn(store), epoch=store.epoch)
    assert fake_generator.called_ids == ["a", "b", "c"]

    fake_generator.before_return = None
    await orchestrator.run(_start_turn(store, "again"), epoch=store.epoch)
    assert fake_generator.called_ids[3:] == ["a", "b", "c", "d"]


@pytest.mark.asyncio
async def test_typing_mark_is_held_only_while_persona_works(store, fake_generator, recording_sleep):
    seen = []
    recording_sleep.on_sleep = lambda delay: seen.append(("sleep", store.typing_snapshot()))
    fake_generator.before_return = lambda persona: seen.append((persona.id, store.typing_snapshot()))
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)

    await orchestrator.run(_start_turn(store), epoch=store.epoch)

    assert seen[0] == ("sleep", {"a": True})
    assert seen[1] == ("a", {"a": True})
    assert seen[3] == ("b", {"b": True})
    assert store.typing_snapshot() == {}


@pytest.mark.asyncio
async def test_typing_mark_is_cleared_after_failure(store, fake_generator, recording_sleep):
    fake_generator.failures["a"] = RuntimeError("boom")
    fake_generator.failures["b"] = RuntimeError("boom")
    fake_generator.failures["c"] = RuntimeError("boom")
    orchestrator = _orchestrator(store, fake_generator, recording_sleep)

    events = await orchestrator.run(_start_turn(store), epoch=store.epoch)

    assert store.typing_snapshot() == {}
    assert [e["persona_id"] for e in events if e["type"] == "persona_idle"] == ["a", "b", "c"]
