from __future__ import annotations

import asyncio

import pytest

from woo_translator.models.step_state import StepStatus
from woo_translator.services.wizard import StepContext, SubmitOutcome, Wizard, WizardStep

pytestmark = pytest.mark.asyncio


def _recording_steps(calls: list[str], fail_on: set[str] | None = None) -> list[WizardStep]:
    fail_on = fail_on if fail_on is not None else set()

    def make(step_id: str):
        async def handler(ctx: StepContext):
            calls.append(step_id)
            if step_id in fail_on:
                raise RuntimeError(f"{step_id} broke")
            return f"{step_id}:{ctx.previous}"

        return handler

    return [WizardStep(s, s.upper(), make(s)) for s in ("a", "b", "c")]


async def test_submit_advances_frontier_and_focus():
    calls: list[str] = []
    wizard = Wizard(_recording_steps(calls))
    assert await wizard.submit_focused_step() is SubmitOutcome.SUCCESS
    assert wizard.frontier == 1
    assert wizard.focused_index == 1
    assert wizard.get_step_state(0).data == "a:None"
    assert await wizard.submit_focused_step() is SubmitOutcome.SUCCESS
    assert wizard.get_step_state(1).data == "b:a:None"


async def test_last_step_success_completes_wizard():
    calls: list[str] = []
    wizard = Wizard(_recording_steps(calls))
    for _ in range(3):
        await wizard.submit_focused_step()
    assert wizard.is_complete
    assert wizard.frontier == 2
    assert calls == ["a", "b", "c"]


async def test_locked_step_is_not_run():
    calls: list[str] = []
    wizard = Wizard(_recording_steps(calls))
    assert wizard.is_step_locked(1)
    assert not wizard.navigate_next()
    assert wizard.focused_index == 0
    assert calls == []


async def test_submitting_a_locked_step_is_rejected():
    calls: list[str] = []
    fail_on: set[str] = set()
    wizard = Wizard(_recording_steps(calls, fail_on))
    await wizard.submit_focused_step()
    await wizard.submit_focused_step()
    wizard.focus(0)
    fail_on.add("a")
    assert await wizard.submit_focused_step() is SubmitOutcome.ERROR

    wizard.focus(1)
    assert wizard.is_step_locked(1)
    before = [wizard.get_step_state(i) for i in range(3)]
    calls.clear()
    assert await wizard.submit_focused_step() is SubmitOutcome.LOCKED
    assert calls == []
    assert [wizard.get_step_state(i) for i in range(3)] == before
    assert wizard.frontier == 2
    assert wizard.focused_index == 1


async def test_focus_beyond_frontier_is_rejected():
    wizard = Wizard(_recording_steps([]))
    with pytest.raises(IndexError):
        wizard.focus(1)


async def test_error_keeps_frontier_and_allows_resubmit():
    calls: list[str] = []
    fail_on = {"b"}
    wizard = Wizard(_recording_steps(calls, fail_on))
    await wizard.submit_focused_step()
    assert await wizard.submit_focused_step() is SubmitOutcome.ERROR
    state = wizard.get_step_state(1)
    assert state.status is StepStatus.ERROR
    assert state.error == "b broke"
    assert wizard.frontier == 1
    assert wizard.is_step_locked(2)

    fail_on.clear()
    assert await wizard.submit_focused_step() is SubmitOutcome.SUCCESS
    assert wizard.get_step_state(1).status is StepStatus.SUCCESS
    assert wizard.frontier == 2


async def test_concurrent_submit_is_busy():
    started = asyncio.Event()
    release = asyncio.Event()
    calls = 0

    async def slow(ctx: StepContext):
        nonlocal calls
        calls += 1
        started.set()
        await release.wait()
        return "done"

    wizard = Wizard([WizardStep("slow", "Slow", slow), WizardStep("next", "Next", slow)])
    first = asyncio.create_task(wizard.submit_focused_step())
    await started.wait()
    assert wizard.is_busy
    assert wizard.get_step_state(0).status is StepStatus.RUNNING
    assert await wizard.submit_focused_step() is SubmitOutcome.BUSY
    release.set()
    assert await first is SubmitOutcome.SUCCESS
    assert calls == 1
    assert not wizard.is_busy


async def test_resubmitting_earlier_step_resets_later_steps():
    calls: list[str] = []
    wizard = Wizard(_recording_steps(calls))
    await wizard.submit_focused_step()
    await wizard.submit_focused_step()
    assert wizard.navigate_prev()
    assert wizard.navigate_prev()
    assert wizard.focused_index == 0

    assert await wizard.submit_focused_step() is SubmitOutcome.SUCCESS
    assert wizard.get_step_state(1).status is StepStatus.IDLE
    assert wizard.get_step_state(1).data is None
    assert wizard.frontier == 1
    assert wizard.is_step_locked(2)


async def test_navigation_bounds():
    calls: list[str] = []
    wizard = Wizard(_recording_steps(calls))
    assert not wizard.navigate_prev()
    await wizard.submit_focused_step()
    assert wizard.navigate_prev()
    assert wizard.navigate_next()
    assert not wizard.navigate_next()


async def test_expects_mismatch_marks_error():
    async def first(ctx: StepContext):
        return "text payload"

    async def second(ctx: StepContext):
        raise AssertionError("must not run")

    wizard = Wizard([WizardStep("first", "First", first), WizardStep("second", "Second", second, expects=int)])
    await wizard.submit_focused_step()
    assert await wizard.submit_focused_step() is SubmitOutcome.ERROR
    assert "expected int, got str" in wizard.get_step_state(1).error


async def test_handlers_share_values_through_setter():
    async def writer(ctx: StepContext):
        ctx.set_value("picked", ["de"])
        return None

    async def reader(ctx: StepContext):
        return list(ctx.values["picked"])

    wizard = Wizard([WizardStep("w", "W", writer), WizardStep("r", "R", reader)], {"picked": []})
    await wizard.submit_focused_step()
    await wizard.submit_focused_step()
    assert wizard.get_step_state(1).data == ["de"]


async def test_reset_restores_initial_state():
    calls: list[str] = []
    wizard = Wizard(_recording_steps(calls), {"csv_path": "a.csv"})
    wizard.set_value("csv_path", "b.csv")
    await wizard.submit_focused_step()
    wizard.reset()
    assert wizard.values["csv_path"] == "a.csv"
    assert wizard.frontier == 0
    assert wizard.focused_index == 0
    assert wizard.get_step_state(0).status is StepStatus.IDLE


async def test_cancellation_marks_step_cancelled():
    async def hang(ctx: StepContext):
        await asyncio.sleep(3600)

    wizard = Wizard([WizardStep("hang", "Hang", hang)])
    task = asyncio.create_task(wizard.submit_focused_step())
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert wizard.get_step_state(0).error == "cancelled"
    assert not wizard.is_busy


async def test_wizard_requires_steps():
    with pytest.raises(ValueError):
        Wizard([])
