"""Robot operating state machine.

Legal transitions live in one table keyed by the full RobotStatus enumeration; the
table is checked for completeness at import time. EMERGENCY_STOP can be entered from
anywhere and has no way out except ``reset()``, which reinitializes the mission.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Tuple

from rescuebot.errors import InvalidTransitionError
from rescuebot.schemas import RobotStatus

S = RobotStatus

TRANSITIONS: Dict[RobotStatus, FrozenSet[RobotStatus]] = {
    S.IDLE: frozenset({S.PLANNING, S.RECHARGING, S.CRITICAL}),
    S.CRITICAL: frozenset({S.PLANNING, S.RECHARGING}),
    S.PLANNING: frozenset({S.MOVING, S.IDLE, S.RECHARGING}),
    S.MOVING: frozenset({S.ACTING, S.IDLE, S.RECHARGING}),
    S.ACTING: frozenset({S.MOVING, S.IDLE, S.RECHARGING}),
    S.RECHARGING: frozenset({S.IDLE}),
    S.EMERGENCY_STOP: frozenset(),
}

if set(TRANSITIONS) != set(RobotStatus):
    raise RuntimeError("TRANSITIONS must list every RobotStatus")


class RobotStateMachine:
    """Tracks the current RobotStatus and enforces the transition table."""

    def __init__(self, status: RobotStatus = RobotStatus.IDLE) -> None:
        self._status = status
        # (from, to, reason) for every accepted transition since the last reset.
        self.history: List[Tuple[RobotStatus, RobotStatus, Optional[str]]] = []

    @property
    def status(self) -> RobotStatus:
        return self._status

    @property
    def is_terminal(self) -> bool:
        return self._status is RobotStatus.EMERGENCY_STOP

    def can_transition(self, target: RobotStatus) -> bool:
        if target is self._status or target is RobotStatus.EMERGENCY_STOP:
            return True
        return target in TRANSITIONS[self._status]

    def transition(self, target: RobotStatus, reason: Optional[str] = None) -> RobotStatus:
        """Move to ``target``. Self-transitions are accepted as no-ops.

        Raises:
            InvalidTransitionError: if the table forbids the move
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self._status, target)
        if target is not self._status:
            self.history.append((self._status, target, reason))
            self._status = target
        return self._status

    def reset(self) -> None:
        self._status = RobotStatus.IDLE
        self.history.clear()
