"""
Pydantic schemas for the RescueBot simulation.

All records exchanged between the world, the scheduler, the decision oracle and the
log/metrics sinks are defined here.

Design Philosophy:
- Profiles coming from outside (scenario files, onboarding collaborators) are clamped
  into their legal ranges instead of rejected
- Robot runtime state is a plain mutable model owned by the scheduler; everyone else
  receives ``model_copy(deep=True)`` snapshots
- Decision and wire models mirror the oracle JSON contract
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple
from uuid import UUID, uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator


def _clamp(value: Any, low: float, high: float, default: float) -> Any:
    """Clamp numeric input into [low, high]; leave anything else for pydantic to judge.

    Numeric strings are converted first. NaN falls back to ``default``.
    """

    if isinstance(value, bool):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return value
    if math.isnan(number):
        return default
    return min(max(number, low), high)


# ============================================================================
# Enumerations
# ============================================================================


class CellType(str, Enum):
    """Ground-truth contents of a grid cell."""

    EMPTY = "EMPTY"
    WALL = "WALL"
    DEBRIS = "DEBRIS"  # Slows movement
    FIRE = "FIRE"      # Must be suppressed before entering
    VICTIM = "VICTIM"  # Rescue goal
    START = "START"    # Charge point, always (0, 0)


class RobotStatus(str, Enum):
    """Operating states of the robot state machine."""

    IDLE = "IDLE"
    PLANNING = "PLANNING"
    MOVING = "MOVING"
    ACTING = "ACTING"
    RECHARGING = "RECHARGING"
    CRITICAL = "CRITICAL"
    EMERGENCY_STOP = "E-STOP"


class SystemModule(str, Enum):
    """Source tag attached to every LogEntry."""

    SIMULATION = "SIMULATION"
    PERCEPTION = "PERCEPTION"
    INTELLIGENCE = "INTELLIGENCE"
    PLANNING = "PLANNING"
    CONTROL = "CONTROL"
    TELEMETRY = "TELEMETRY"
    SAFETY = "SAFETY_SYSTEM"


class LogSeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"


class DecisionAction(str, Enum):
    MOVE = "MOVE"
    RESCUE = "RESCUE"
    EXTINGUISH = "EXTINGUISH"
    EXPLORE = "EXPLORE"
    RECHARGE = "RECHARGE"


class DecisionPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# ============================================================================
# Spatial Schemas
# ============================================================================


class Coordinates(BaseModel):
    """Integer grid coordinates. Frozen so they can key dicts and sets."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def __str__(self) -> str:
        return f"({self.x},{self.y})"


CHARGE_POINT = Coordinates(x=0, y=0)


class SensorReading(BaseModel):
    """One cell observed by the range sensor during a scan."""

    coordinates: Coordinates
    type: CellType
    distance: int = Field(..., ge=0, description="Manhattan distance from the robot")


# ============================================================================
# Profiles (external configuration input)
# ============================================================================


class RobotProfile(BaseModel):
    """Immutable robot hardware profile for one mission.

    Numeric fields are clamped into range so a sloppy configuration collaborator can
    never crash mission start.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    speed_multiplier: float = Field(1.0, description="0.5-2.0; faster robots drain more")
    battery_drain_rate: float = Field(1.0, description="0.5-1.5 multiplier on all drain")
    max_health: int = Field(100, description="50-150 starting health")

    @field_validator("speed_multiplier", mode="before")
    @classmethod
    def _clamp_speed(cls, value: Any) -> Any:
        return _clamp(value, 0.5, 2.0, 1.0)

    @field_validator("battery_drain_rate", mode="before")
    @classmethod
    def _clamp_drain(cls, value: Any) -> Any:
        return _clamp(value, 0.5, 1.5, 1.0)

    @field_validator("max_health", mode="before")
    @classmethod
    def _clamp_health(cls, value: Any) -> Any:
        clamped = _clamp(value, 50, 150, 100)
        return round(clamped) if isinstance(clamped, float) else clamped


DEFAULT_ROBOT_PROFILE = RobotProfile(
    id="standard",
    name="Standard Responder",
    description="Balanced speed, efficiency and durability.",
)


class ScenarioProfile(BaseModel):
    """Parameters for procedural world generation."""

    id: str
    name: str
    description: str = ""
    obstacle_density: float = Field(0.2, description="Probability a cell is WALL/DEBRIS")
    victim_count: int = 3
    fire_count: int = 4
    seed: Optional[int] = Field(None, description="Fixes generation for reproducibility")

    @field_validator("obstacle_density", mode="before")
    @classmethod
    def _clamp_density(cls, value: Any) -> Any:
        return _clamp(value, 0.0, 1.0, 0.2)

    @field_validator("victim_count", "fire_count", mode="before")
    @classmethod
    def _clamp_counts(cls, value: Any, info: ValidationInfo) -> Any:
        default = cls.model_fields[info.field_name].default
        clamped = _clamp(value, 0, float("inf"), default)
        if isinstance(clamped, float):
            return round(clamped) if math.isfinite(clamped) else default
        return clamped


# ============================================================================
# Logging & Metrics
# ============================================================================


class LogEntry(BaseModel):
    """Append-only mission log record emitted to sinks."""

    id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message: str
    source: SystemModule
    severity: LogSeverity = LogSeverity.INFO


class MetricPoint(BaseModel):
    step: int
    value: float


class SimulationMetrics(BaseModel):
    """Time-series and ROI totals derived once per executed tick."""

    steps_taken: int = 0
    battery_history: List[MetricPoint] = Field(default_factory=list)
    exploration_rate: List[MetricPoint] = Field(default_factory=list)
    operational_cost: float = 0.0
    value_generated: float = 0.0
    # Cumulative drain; recharging never reduces it so cost stays monotonic.
    battery_consumed_total: float = 0.0

    @property
    def roi(self) -> float:
        return self.value_generated - self.operational_cost


# ============================================================================
# Robot Runtime State
# ============================================================================


class RobotState(BaseModel):
    """Dynamic robot state. Owned and mutated only by the tick scheduler."""

    position: Coordinates = CHARGE_POINT
    battery: float = 100.0
    health: float = 100.0
    status: RobotStatus = RobotStatus.IDLE
    victims_rescued: int = 0
    fires_extinguished: int = 0
    path: List[Coordinates] = Field(default_factory=list, description="Cells still to traverse")
    current_goal: Optional[Coordinates] = None
    logs: List[LogEntry] = Field(default_factory=list)


# ============================================================================
# Decision Oracle Contract
# ============================================================================


class Decision(BaseModel):
    """High-level intent returned by the decision oracle.

    ``targetCoordinates`` is accepted as an input alias to match the oracle wire format.
    """

    model_config = ConfigDict(populate_by_name=True)

    reasoning: str = Field(..., description="Chain of thought for the decision.")
    action: DecisionAction
    target_coordinates: Optional[Coordinates] = Field(
        None,
        validation_alias=AliasChoices("target_coordinates", "targetCoordinates"),
        description="Global grid coordinates for the target.",
    )
    priority: DecisionPriority

    @field_validator("action", "priority", mode="before")
    @classmethod
    def _normalize_enum_case(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class OracleTelemetry(BaseModel):
    battery: float
    health: float
    position: Coordinates
    status: RobotStatus


class OraclePerceptionCell(BaseModel):
    x: int
    y: int
    type: CellType
    relative_distance: int


class DecisionRequest(BaseModel):
    """Payload sent to the decision oracle: robot telemetry plus the known world."""

    telemetry: OracleTelemetry
    perception: List[OraclePerceptionCell] = Field(default_factory=list)
    grid_size: int
