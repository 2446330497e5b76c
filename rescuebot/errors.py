"""Exceptions raised by the RescueBot core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from rescuebot.schemas import RobotStatus


class RescueBotError(Exception):
    """Base class for library errors."""


class InvalidTransitionError(RescueBotError):
    """Raised when the state machine is asked for a transition its table forbids."""

    def __init__(self, current: "RobotStatus", target: "RobotStatus") -> None:
        self.current = current
        self.target = target
        super().__init__(f"Illegal robot state transition {current.value} -> {target.value}")


class DecisionInFlightError(RescueBotError):
    """Raised when a second decision request is submitted while one is outstanding."""


class OracleThrottledError(RescueBotError):
    """Raised by oracle adapters when the provider reports rate limiting."""

    status_code = 429


class OracleResponseError(RescueBotError):
    """Raised when the oracle returns an empty or unusable payload."""


class MissionHaltedError(RescueBotError):
    """Raised when resuming a mission that needs an explicit reset.

    Covers both emergency stop and battery depletion.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Mission halted: {reason}\n\n"
            "Remediation tips:\n"
            "  - Call reset() to regenerate the world and reinitialize the robot\n"
            "  - Lower the scenario hazard counts or pick a more efficient robot profile"
        )
