"""Tests for the confirmation gate."""

import pytest

from kairos.confirm import (
    RESTART,
    TERMINATE,
    ConfirmationBusy,
    ConfirmationState,
    Phase,
    Target,
    bind,
    complete,
    expire,
    request,
    respond,
)


@pytest.fixture
def terminate_one():
    return bind(TERMINATE, (Target("order-1", "run-1"),))


class TestBind:
    """Tests for bind()."""

    def test_terminate_single(self, terminate_one):
        action, prompt, success = terminate_one
        assert action.reason == "Terminated from kairos"
        assert prompt == "Terminate order-1? (y/n)"
        assert success == "Terminated order-1"

    def test_restart_many(self):
        action, prompt, success = bind(RESTART, (Target("a", "1"), Target("b", "2")))
        assert action.reason == "Restarted from kairos"
        assert prompt == "Restart 2 workflows? (y/n)"
        assert success == "Restarted 2 workflows"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            bind("delete", (Target("a", "1"),))


class TestConfirmationFlow:
    """Tests for the phase transitions."""

    def test_confirmed_scenario(self, terminate_one):
        state = request(ConfirmationState(), *terminate_one)
        assert state.phase is Phase.AWAITING_CONFIRMATION
        assert state.prompt == "Terminate order-1? (y/n)"

        state = respond(state, True)
        assert state.phase is Phase.EXECUTING
        assert state.action.targets == (Target("order-1", "run-1"),)

        state = complete(state)
        assert state.phase is Phase.COMPLETED
        assert state.result_text == "Terminated order-1"
        assert not state.failed

        assert expire(state) == ConfirmationState()

    def test_declined_returns_to_idle(self, terminate_one):
        state = respond(request(ConfirmationState(), *terminate_one), False)
        assert state == ConfirmationState()

    def test_failure_is_shown(self, terminate_one):
        state = respond(request(ConfirmationState(), *terminate_one), True)
        state = complete(state, "workflow already completed")
        assert state.failed
        assert state.result_text == "Failed: workflow already completed"

    def test_request_while_busy_is_refused(self, terminate_one):
        state = request(ConfirmationState(), *terminate_one)
        with pytest.raises(ConfirmationBusy):
            request(state, *terminate_one)

    def test_out_of_phase_calls_are_ignored(self, terminate_one):
        idle = ConfirmationState()
        assert respond(idle, True) is idle
        assert complete(idle) is idle
        assert expire(idle) is idle
        awaiting = request(idle, *terminate_one)
        assert complete(awaiting) is awaiting
