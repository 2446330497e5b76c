"""Tests for the robot state machine transition table."""

import pytest

from rescuebot.errors import InvalidTransitionError
from rescuebot.schemas import RobotStatus
from rescuebot.state_machine import TRANSITIONS, RobotStateMachine


def test_table_covers_every_status():
    assert set(TRANSITIONS) == set(RobotStatus)


def test_mission_cycle_is_legal():
    machine = RobotStateMachine()

    for status in (
        RobotStatus.PLANNING,
        RobotStatus.MOVING,
        RobotStatus.ACTING,
        RobotStatus.MOVING,
        RobotStatus.RECHARGING,
        RobotStatus.IDLE,
        RobotStatus.CRITICAL,
        RobotStatus.PLANNING,
        RobotStatus.IDLE,
    ):
        machine.transition(status)

    assert machine.status is RobotStatus.IDLE
    assert len(machine.history) == 9


def test_illegal_transition_raises_and_keeps_status():
    machine = RobotStateMachine()

    with pytest.raises(InvalidTransitionError) as excinfo:
        machine.transition(RobotStatus.MOVING)

    assert machine.status is RobotStatus.IDLE
    assert excinfo.value.current is RobotStatus.IDLE
    assert excinfo.value.target is RobotStatus.MOVING
    assert "IDLE -> MOVING" in str(excinfo.value)


def test_recharging_only_returns_to_idle():
    machine = RobotStateMachine(RobotStatus.RECHARGING)

    assert machine.can_transition(RobotStatus.IDLE)
    assert not machine.can_transition(RobotStatus.PLANNING)
    assert not machine.can_transition(RobotStatus.MOVING)


def test_emergency_stop_from_anywhere_is_terminal():
    for status in RobotStatus:
        machine = RobotStateMachine(status)
        machine.transition(RobotStatus.EMERGENCY_STOP, "operator")
        assert machine.is_terminal

    with pytest.raises(InvalidTransitionError):
        machine.transition(RobotStatus.IDLE)

    machine.reset()
    assert machine.status is RobotStatus.IDLE
    assert machine.history == []


def test_self_transition_is_a_no_op():
    machine = RobotStateMachine(RobotStatus.MOVING)

    machine.transition(RobotStatus.MOVING)

    assert machine.history == []
