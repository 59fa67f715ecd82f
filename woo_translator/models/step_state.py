from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

"""Wizard step state model.

State transitions: idle → running → (success | error); error → running on
resubmission. States are only created and replaced by the wizard.
"""

__all__ = [
    "StepStatus",
    "WizardStepState",
]


class StepStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class WizardStepState:
    status: StepStatus = StepStatus.IDLE
    data: Any = None  # payload produced by the step handler on success
    error: str | None = None

    @staticmethod
    def idle() -> WizardStepState:
        return WizardStepState()

    def running(self) -> WizardStepState:
        # previous payload is kept while resubmitting
        return WizardStepState(status=StepStatus.RUNNING, data=self.data)

    @staticmethod
    def succeeded(data: Any) -> WizardStepState:
        return WizardStepState(status=StepStatus.SUCCESS, data=data)

    def failed(self, message: str) -> WizardStepState:
        return WizardStepState(status=StepStatus.ERROR, data=self.data, error=message)

    @property
    def is_success(self) -> bool:
        return self.status is StepStatus.SUCCESS
