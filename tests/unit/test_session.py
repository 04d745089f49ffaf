"""Suggestion session: one generate-parse-display cycle and its recovery paths."""

from __future__ import annotations

import asyncio

import pytest

from cyoa.host import NoticeLevel
from cyoa.session import GENERATION_LABEL, SessionOutcome, SuggestionSession
from cyoa.testing import InMemoryChatHost, RecordingPresentation, make_turn
from cyoa.turns import SUGGESTION_BATCH_NAME, SUGGESTION_BATCH_TAG, Role
from tests.helpers import FakeClock

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_success_displays_and_records_batch(session, host, service, presentation):
    service.script.append(
        "<suggestion>Follow the figure</suggestion>"
        "<suggestion>Order a drink</suggestion>"
    )

    outcome = await session.run()

    assert outcome is SessionOutcome.DISPLAYED
    assert presentation.displayed == [["Follow the figure", "Order a drink"]]
    assert presentation.levels() == [NoticeLevel.INFO, NoticeLevel.SUCCESS]
    batch = host.turns[-1]
    assert batch.is_suggestion_batch
    assert batch.role is Role.USER
    assert batch.name == SUGGESTION_BATCH_NAME
    assert batch.suggestions == ("Follow the figure", "Order a drink")
    assert not session.gate.busy


@pytest.mark.asyncio
async def test_service_receives_prompt_and_options(session, service, config):
    session.config = config.with_changes(
        num_suggestions=3, response_length=120, apply_world_info=False
    )

    await session.run()

    (call,) = service.calls
    assert "provide a response with 3 brief" in call["prompt"]
    assert call["quiet_to_loud"] is False
    assert call["skip_world_info"] is True
    assert call["response_length"] == 120
    assert call["label"] == GENERATION_LABEL


@pytest.mark.asyncio
async def test_parse_failure_is_reported(session, host, service, presentation):
    service.script.append("ok")
    before = len(host.turns)

    outcome = await session.run()

    assert outcome is SessionOutcome.PARSE_FAILED
    assert presentation.displayed == []
    assert presentation.notices[-1] == (
        NoticeLevel.ERROR,
        "CYOA: Failed to parse response",
    )
    assert len(host.turns) == before
    assert not session.gate.busy


@pytest.mark.asyncio
async def test_service_error_is_recovered(session, service, presentation, caplog):
    service.script.append(ConnectionError("backend unreachable"))

    with caplog.at_level("ERROR", logger="cyoa.session"):
        outcome = await session.run()

    assert outcome is SessionOutcome.FAILED
    assert presentation.notices[-1] == (
        NoticeLevel.ERROR,
        "CYOA: Failed to generate options",
    )
    assert "backend unreachable" in caplog.text
    assert not session.gate.busy

    # The gate is free for the next attempt.
    assert await session.run() is SessionOutcome.DISPLAYED


@pytest.mark.asyncio
async def test_display_error_is_recovered(host, service, config, gate):
    class BrokenPresentation(RecordingPresentation):
        def display(self, suggestions):
            raise RuntimeError("render failed")

    presentation = BrokenPresentation()
    session = SuggestionSession(host, service, presentation, config=config, gate=gate)
    before = list(host.turns)

    assert await session.run() is SessionOutcome.FAILED
    assert presentation.levels()[-1] is NoticeLevel.ERROR
    assert not gate.busy
    # The undisplayed batch is rolled back.
    assert list(host.turns) == before
    assert not any(t.is_suggestion_batch for t in host.turns)


@pytest.mark.asyncio
async def test_notice_errors_do_not_escape(host, service, config):
    class MutePresentation(RecordingPresentation):
        def notify(self, level, message):
            raise RuntimeError("toast failed")

    presentation = MutePresentation()
    session = SuggestionSession(host, service, presentation, config=config)

    assert await session.run() is SessionOutcome.DISPLAYED
    assert presentation.displayed == [["Look around"]]


@pytest.mark.asyncio
async def test_busy_gate_skips_generation(session, service, presentation, gate):
    async with gate.hold():
        outcome = await session.run()

    assert outcome is SessionOutcome.BUSY
    assert service.calls == []
    assert presentation.notices == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("turns", "has_selection"),
    [([], True), ([make_turn(0, Role.ASSISTANT, "Hello")], False)],
)
async def test_skipped_without_selection_or_history(
    turns, has_selection, service, presentation, config
):
    host = InMemoryChatHost(turns, has_selection=has_selection)
    session = SuggestionSession(host, service, presentation, config=config)

    assert await session.run() is SessionOutcome.SKIPPED
    assert service.calls == []
    assert presentation.notices == []


@pytest.mark.asyncio
async def test_stale_batch_is_replaced(session, host, service):
    service.script.extend(
        ["<suggestion>First</suggestion>", "<suggestion>Second</suggestion>"]
    )
    await session.run()
    first_batch = host.turns[-1]

    await session.run()

    batches = [t for t in host.turns if t.tag == SUGGESTION_BATCH_TAG]
    assert len(batches) == 1
    assert batches[0].suggestions == ("Second",)
    assert first_batch.id in host.removed


@pytest.mark.asyncio
async def test_busy_run_still_removes_stale_batch(session, host, gate):
    host.append_turn(
        role=Role.USER, name=SUGGESTION_BATCH_NAME, text="Old", tag=SUGGESTION_BATCH_TAG
    )
    async with gate.hold():
        assert await session.run() is SessionOutcome.BUSY
    assert not host.turns[-1].is_suggestion_batch


@pytest.mark.asyncio
async def test_concurrent_runs_call_service_once(session, service):
    service.release = asyncio.Event()

    first = asyncio.create_task(session.run())
    await asyncio.sleep(0)
    second = await session.run()
    service.release.set()

    assert second is SessionOutcome.BUSY
    assert await first is SessionOutcome.DISPLAYED
    assert len(service.calls) == 1


@pytest.mark.asyncio
async def test_cancellation_releases_gate(session, service):
    service.release = asyncio.Event()
    task = asyncio.create_task(session.run())
    await asyncio.sleep(0)
    assert session.gate.busy

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert not session.gate.busy


class TestWaitForIdle:
    @pytest.mark.asyncio
    async def test_proceeds_after_host_timeout(
        self, host, service, presentation, config
    ):
        clock = FakeClock()
        host.is_generating = True
        session = SuggestionSession(
            host, service, presentation, config=config, clock=clock, sleep=clock.sleep
        )

        assert await session.run() is SessionOutcome.DISPLAYED
        assert clock.now == pytest.approx(30.0)

    @pytest.mark.asyncio
    async def test_group_wait_is_short(
        self, story_turns, service, presentation, config
    ):
        clock = FakeClock()
        host = InMemoryChatHost(story_turns, group_selected=True)
        host.is_group_generating = True
        session = SuggestionSession(
            host, service, presentation, config=config, clock=clock, sleep=clock.sleep
        )

        assert await session.wait_for_idle() is False
        assert clock.now == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_idle_host_does_not_wait(self, host, service, presentation, config):
        clock = FakeClock()
        session = SuggestionSession(
            host, service, presentation, config=config, clock=clock, sleep=clock.sleep
        )
        assert await session.wait_for_idle() is True
        assert clock.sleeps == []


class TestSelection:
    @pytest.mark.asyncio
    async def test_select_impersonates_with_trimmed_text(self, session, host):
        await session.run()

        assert await session.on_select("  Draw the sword  ") is True

        (prompt,) = host.impersonated
        assert "`Draw the sword`" in prompt
        assert not host.turns[-1].is_suggestion_batch

    @pytest.mark.asyncio
    async def test_blank_selection_is_ignored(self, session, host):
        assert await session.on_select("   ") is False
        assert host.impersonated == []

    @pytest.mark.asyncio
    async def test_impersonation_failure_is_reported(self, session, host, presentation):
        async def broken(_prompt):
            raise RuntimeError("host refused")

        host.generate_as_user = broken
        assert await session.on_select("Run") is False
        assert presentation.notices[-1][0] is NoticeLevel.ERROR

    @pytest.mark.asyncio
    async def test_edit_fills_compose_buffer(self, session, host):
        await session.run()

        assert await session.on_edit(" Sneak out the back ") is True

        assert host.compose_text == "Sneak out the back"
        assert host.impersonated == []
        assert not host.turns[-1].is_suggestion_batch
