from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..models.step_state import StepStatus, WizardStepState

"""Step-by-step wizard state machine.

Steps are submitted one at a time on the focused step:

- a step is locked until its predecessor is ``success``; submitting a locked
  step changes nothing and never calls the handler
- while a submission is in flight further submissions are ignored
- success stores the handler's payload, advances the frontier (furthest
  reachable step) by one and focuses it
- an exception marks the step ``error``; the frontier stays and the step can
  be submitted again
- a successful resubmission of an earlier step resets every later step to
  ``idle``, since their payloads were derived from the old one

Handlers receive the shared values (read-only view), the predecessor's payload
and a setter for values.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "StepContext",
    "WizardStep",
    "SubmitOutcome",
    "Wizard",
]


@dataclass(frozen=True)
class StepContext:
    values: Mapping[str, Any]
    previous: Any
    set_value: Callable[[str, Any], None]
    step_index: int


StepHandler = Callable[[StepContext], Awaitable[Any]]


@dataclass(frozen=True)
class WizardStep:
    id: str
    title: str
    handler: StepHandler
    # payload type(s) accepted from the predecessor; None for the first step
    expects: type | tuple[type, ...] | None = None


class SubmitOutcome(Enum):
    SUCCESS = "success"
    ERROR = "error"
    BUSY = "busy"  # another submission is in flight
    LOCKED = "locked"  # predecessor has not succeeded


class Wizard:
    def __init__(self, steps: Sequence[WizardStep], initial_values: Mapping[str, Any] | None = None) -> None:
        if not steps:
            raise ValueError("a wizard needs at least one step")
        self._steps = list(steps)
        self._initial_values = dict(initial_values or {})
        self._values: dict[str, Any] = dict(self._initial_values)
        self._states: list[WizardStepState] = [WizardStepState.idle() for _ in self._steps]
        self._frontier = 0
        self._focused = 0
        self._submitting = False

    # ---- read access -------------------------------------------------
    @property
    def steps(self) -> list[WizardStep]:
        return list(self._steps)

    @property
    def values(self) -> Mapping[str, Any]:
        return MappingProxyType(self._values)

    @property
    def frontier(self) -> int:
        return self._frontier

    @property
    def focused_index(self) -> int:
        return self._focused

    @property
    def focused_step(self) -> WizardStep:
        return self._steps[self._focused]

    @property
    def is_busy(self) -> bool:
        return self._submitting

    @property
    def is_complete(self) -> bool:
        return self._states[-1].is_success

    def get_step_state(self, index: int) -> WizardStepState:
        return self._states[index]

    def index_of(self, step_id: str) -> int:
        for i, step in enumerate(self._steps):
            if step.id == step_id:
                return i
        raise KeyError(step_id)

    def is_step_locked(self, index: int) -> bool:
        if index == 0:
            return False
        return self._states[index - 1].status is not StepStatus.SUCCESS

    # ---- mutation ----------------------------------------------------
    def set_value(self, key: str, value: Any) -> None:
        self._values[key] = value

    async def submit_focused_step(self) -> SubmitOutcome:
        if self._submitting:
            logger.debug("wizard: submission already in flight, ignored")
            return SubmitOutcome.BUSY
        index = self._focused
        if self.is_step_locked(index):
            logger.debug(f"wizard: step {self._steps[index].id!r} is locked")
            return SubmitOutcome.LOCKED

        self._submitting = True
        step = self._steps[index]
        self._states[index] = self._states[index].running()
        try:
            previous = self._states[index - 1].data if index > 0 else None
            if step.expects is not None and not isinstance(previous, step.expects):
                raise TypeError(
                    f"step {step.id!r} expected {_type_names(step.expects)}, got {type(previous).__name__}"
                )
            ctx = StepContext(
                values=MappingProxyType(dict(self._values)),
                previous=previous,
                set_value=self.set_value,
                step_index=index,
            )
            payload = await step.handler(ctx)
        except asyncio.CancelledError:
            self._states[index] = self._states[index].failed("cancelled")
            raise
        except Exception as e:
            message = str(e) or type(e).__name__
            self._states[index] = self._states[index].failed(message)
            logger.debug(f"wizard: step {step.id!r} failed: {message}")
            return SubmitOutcome.ERROR
        finally:
            self._submitting = False

        self._states[index] = WizardStepState.succeeded(payload)
        for later in range(index + 1, len(self._states)):
            self._states[later] = WizardStepState.idle()
        if index + 1 < len(self._steps):
            self._frontier = index + 1
            self._focused = index + 1
        else:
            self._frontier = index
        return SubmitOutcome.SUCCESS

    def navigate_next(self) -> bool:
        target = self._focused + 1
        if target > self._frontier or target >= len(self._steps) or self.is_step_locked(target):
            return False
        self._focused = target
        return True

    def focus(self, index: int) -> None:
        """Focus any visited step. A locked step can be focused but not submitted."""
        if not 0 <= index <= self._frontier:
            raise IndexError(f"step {index} is beyond the frontier ({self._frontier})")
        self._focused = index

    def navigate_prev(self) -> bool:
        if self._focused == 0:
            return False
        self._focused -= 1
        return True

    def reset(self) -> None:
        self._values = dict(self._initial_values)
        self._states = [WizardStepState.idle() for _ in self._steps]
        self._frontier = 0
        self._focused = 0


def _type_names(expects: type | tuple[type, ...]) -> str:
    if isinstance(expects, tuple):
        return " | ".join(t.__name__ for t in expects)
    return expects.__name__
