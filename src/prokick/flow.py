"""Confirm / submit / result state machine shared by every user action.

Each controller owns one ActionFlow. An action is opened with a prompt and
a submit callable, confirmed (which runs the callable once), and finally
acknowledged. The flow's state is the only thing a front-end needs to
decide what to show and which controls to disable.

    IDLE -> CONFIRMING -> SUBMITTING -> SUCCEEDED | FAILED -> IDLE
    IDLE -> FAILED                  (client-side precondition failed)
    CONFIRMING -> IDLE              (user aborted)
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.prokick.errors import InvalidTransition, PreconditionError, RequestError
from src.prokick.logging import get_logger

logger = get_logger(__name__)


class FlowState(str, Enum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS: dict[FlowState, frozenset[FlowState]] = {
    FlowState.IDLE: frozenset({FlowState.CONFIRMING, FlowState.FAILED}),
    FlowState.CONFIRMING: frozenset({FlowState.SUBMITTING, FlowState.IDLE}),
    FlowState.SUBMITTING: frozenset({FlowState.SUCCEEDED, FlowState.FAILED}),
    FlowState.SUCCEEDED: frozenset({FlowState.IDLE}),
    FlowState.FAILED: frozenset({FlowState.IDLE}),
}


@dataclass
class Outcome:
    """What a submitted action produced."""

    success: bool
    message: str
    result: Any = None


class ActionFlow:
    """One action at a time, with an explicit state."""

    def __init__(self) -> None:
        self.state = FlowState.IDLE
        self.kind: str | None = None
        self.prompt: str | None = None
        self.message: str | None = None
        self.result: Any = None
        self._submit: Callable[[], Outcome] | None = None

    @property
    def busy(self) -> bool:
        return self.state is FlowState.SUBMITTING

    @property
    def finished(self) -> bool:
        return self.state in (FlowState.SUCCEEDED, FlowState.FAILED)

    def _move(self, target: FlowState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(f"Cannot go from {self.state.value} to {target.value}")
        logger.debug("flow_transition", kind=self.kind, source=self.state.value, target=target.value)
        self.state = target

    def _reset(self) -> None:
        self.kind = None
        self.prompt = None
        self.message = None
        self.result = None
        self._submit = None

    def _prepare(self, kind: str) -> None:
        # A finished or pending-confirmation flow is replaced by the new one
        if self.busy:
            raise InvalidTransition("An action is already being submitted")
        if self.finished:
            self.acknowledge()
        elif self.state is FlowState.CONFIRMING:
            self.abort()
        self.kind = kind

    def open(self, kind: str, prompt: str, submit: Callable[[], Outcome]) -> None:
        """Ask for confirmation of an action.

        Raises:
            InvalidTransition: If another action is still submitting.
        """
        self._prepare(kind)
        self.prompt = prompt
        self._submit = submit
        self._move(FlowState.CONFIRMING)

    def refuse(self, kind: str, message: str) -> None:
        """Fail an action before anything is sent."""
        self._prepare(kind)
        self.message = message
        self._move(FlowState.FAILED)
        logger.info("action_refused", kind=kind, reason=message)

    def confirm(self) -> FlowState:
        """Submit the pending action once and record its outcome.

        Transport failures and late precondition failures end the flow as
        FAILED; they are not re-raised.
        """
        self._move(FlowState.SUBMITTING)
        submit = self._submit
        try:
            outcome = submit()
        except RequestError as e:
            outcome = Outcome(False, f"Error: {e}")
        except PreconditionError as e:
            outcome = Outcome(False, str(e))
        except Exception:
            # Never leave the flow stuck in SUBMITTING
            self.message = "Unexpected error"
            self._move(FlowState.FAILED)
            raise
        self.message = outcome.message
        self.result = outcome.result
        self._move(FlowState.SUCCEEDED if outcome.success else FlowState.FAILED)
        logger.info("action_finished", kind=self.kind, success=outcome.success)
        return self.state

    def abort(self) -> None:
        if self.state is not FlowState.CONFIRMING:
            raise InvalidTransition(f"Nothing to abort while {self.state.value}")
        self._move(FlowState.IDLE)
        self._reset()

    def acknowledge(self) -> None:
        if not self.finished:
            raise InvalidTransition(f"Nothing to acknowledge while {self.state.value}")
        self._move(FlowState.IDLE)
        self._reset()
