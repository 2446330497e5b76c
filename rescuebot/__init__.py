"""
RescueBot - autonomous search-and-rescue grid robot simulation.

A robot explores a procedurally generated disaster zone under fog of war, asks a
decision oracle (LLM or rule-based) what to do, plans with A*, and executes one
physics step per tick while telemetry tracks battery, exploration and ROI.

No file I/O required. No LLM required (RuleBasedOracle).
All dependencies injected by user.
"""

__version__ = "0.1.0"

# Main simulation components
from .orchestrator import MissionOrchestrator
from .decision import DecisionOrchestrator, DecisionOutcome, fallback_decision
from .oracle import DecisionOracle, LLMDecisionOracle, RuleBasedOracle, build_decision_request

# Core building blocks
from .control import StepOutcome, StepResult, execute_step
from .perception import ScanResult, get_known_world, scan
from .state_machine import RobotStateMachine, TRANSITIONS
from .telemetry import create_log, initial_metrics, update_metrics
from .sinks import TelemetrySink, InMemorySink, JsonlSink
from .environment import (
    Cell,
    Grid,
    MOVEMENT_COST,
    generate,
    plan_path,
    choose_exploration_target,
)

# Core schemas
from .schemas import (
    CHARGE_POINT,
    CellType,
    Coordinates,
    Decision,
    DecisionAction,
    DecisionPriority,
    DecisionRequest,
    LogEntry,
    LogSeverity,
    RobotProfile,
    RobotState,
    RobotStatus,
    ScenarioProfile,
    SimulationMetrics,
    SystemModule,
)
from .errors import (
    RescueBotError,
    InvalidTransitionError,
    DecisionInFlightError,
    OracleThrottledError,
    OracleResponseError,
    MissionHaltedError,
)

# Scenario loader helpers
from .scenario import load_scenario, ScenarioLoader, SCENARIOS, ROBOT_PROFILES

__all__ = [
    # Main classes
    "MissionOrchestrator",
    "DecisionOrchestrator",
    "DecisionOutcome",
    "fallback_decision",
    # Oracles
    "DecisionOracle",
    "LLMDecisionOracle",
    "RuleBasedOracle",
    "build_decision_request",
    # Building blocks
    "StepOutcome",
    "StepResult",
    "execute_step",
    "ScanResult",
    "get_known_world",
    "scan",
    "RobotStateMachine",
    "TRANSITIONS",
    "create_log",
    "initial_metrics",
    "update_metrics",
    "TelemetrySink",
    "InMemorySink",
    "JsonlSink",
    # World model
    "Cell",
    "Grid",
    "MOVEMENT_COST",
    "generate",
    "plan_path",
    "choose_exploration_target",
    # Schemas
    "CHARGE_POINT",
    "CellType",
    "Coordinates",
    "Decision",
    "DecisionAction",
    "DecisionPriority",
    "DecisionRequest",
    "LogEntry",
    "LogSeverity",
    "RobotProfile",
    "RobotState",
    "RobotStatus",
    "ScenarioProfile",
    "SimulationMetrics",
    "SystemModule",
    # Errors
    "RescueBotError",
    "InvalidTransitionError",
    "DecisionInFlightError",
    "OracleThrottledError",
    "OracleResponseError",
    "MissionHaltedError",
    # Scenario helpers
    "load_scenario",
    "ScenarioLoader",
    "SCENARIOS",
    "ROBOT_PROFILES",
]
