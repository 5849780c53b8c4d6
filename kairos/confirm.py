"""Confirmation gate for destructive actions.

    Idle -> AwaitingConfirmation -> Idle                    (declined)
    Idle -> AwaitingConfirmation -> Executing -> Completed -> Idle

The action is bound when the request is made and only dispatched on an
affirmative answer. A request made while another is in flight is refused
with ConfirmationBusy.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

# Seconds the outcome stays on screen before the gate resets
DISPLAY_SECONDS = 3.0

TERMINATE = "terminate"
RESTART = "restart"


class Phase(str, Enum):
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING = "executing"
    COMPLETED = "completed"


class ConfirmationBusy(RuntimeError):
    """A destructive action is already pending confirmation or running."""


@dataclass(frozen=True)
class Target:
    workflow_id: str
    run_id: str


@dataclass(frozen=True)
class BoundAction:
    kind: str
    targets: tuple[Target, ...]
    reason: str

    @property
    def description(self) -> str:
        if len(self.targets) == 1:
            return self.targets[0].workflow_id
        return f"{len(self.targets)} workflows"


@dataclass(frozen=True)
class ConfirmationState:
    phase: Phase = Phase.IDLE
    prompt: str = ""
    success_text: str = ""
    action: BoundAction | None = None
    result_text: str = ""
    failed: bool = False

    @property
    def is_idle(self) -> bool:
        return self.phase is Phase.IDLE


def bind(kind: str, targets: tuple[Target, ...]) -> tuple[BoundAction, str, str]:
    """Build the action, prompt and success text for a destructive request."""
    if kind == TERMINATE:
        action = BoundAction(kind, targets, reason="Terminated from kairos")
        verb, done = "Terminate", "Terminated"
    elif kind == RESTART:
        action = BoundAction(kind, targets, reason="Restarted from kairos")
        verb, done = "Restart", "Restarted"
    else:
        raise ValueError(f"Unknown action: {kind}")
    prompt = f"{verb} {action.description}? (y/n)"
    return action, prompt, f"{done} {action.description}"


def request(
    state: ConfirmationState,
    action: BoundAction,
    prompt: str,
    success_text: str,
) -> ConfirmationState:
    if not state.is_idle:
        raise ConfirmationBusy(f"Cannot start a new action while {state.phase.value}")
    return ConfirmationState(
        phase=Phase.AWAITING_CONFIRMATION,
        prompt=prompt,
        success_text=success_text,
        action=action,
    )


def respond(state: ConfirmationState, confirmed: bool) -> ConfirmationState:
    """Answer the prompt. Ignored outside AwaitingConfirmation."""
    if state.phase is not Phase.AWAITING_CONFIRMATION:
        return state
    if not confirmed:
        return ConfirmationState()
    return replace(state, phase=Phase.EXECUTING)


def complete(state: ConfirmationState, error: str | None = None) -> ConfirmationState:
    """Record the action's outcome. Ignored outside Executing."""
    if state.phase is not Phase.EXECUTING:
        return state
    if error:
        return replace(
            state,
            phase=Phase.COMPLETED,
            result_text=f"Failed: {error}",
            failed=True,
        )
    return replace(state, phase=Phase.COMPLETED, result_text=state.success_text)


def expire(state: ConfirmationState) -> ConfirmationState:
    """Clear a shown outcome. Ignored outside Completed."""
    if state.phase is not Phase.COMPLETED:
        return state
    return ConfirmationState()
