"""Telemetry aggregation: log entry factory and the ROI metrics model.

Metrics are recomputed once per executed tick from the previous snapshot. Every call
returns a new SimulationMetrics; callers holding an older snapshot never see it change.
"""

from typing import Optional

from rescuebot.config import Config
from rescuebot.schemas import (
    LogEntry,
    LogSeverity,
    MetricPoint,
    SimulationMetrics,
    SystemModule,
)

# Financial model (currency units)
COST_PER_STEP = 0.50
COST_PER_BATTERY_PERCENT = 5.00
VALUE_PER_RESCUE = 5000.0
VALUE_PER_HAZARD = 1500.0


def create_log(
    source: SystemModule,
    message: str,
    severity: LogSeverity = LogSeverity.INFO,
) -> LogEntry:
    """Build a timestamped LogEntry with a fresh id."""
    return LogEntry(message=message, source=source, severity=severity)


def initial_metrics(max_battery: Optional[float] = None) -> SimulationMetrics:
    """Metrics for a fresh mission: one step-0 point per series."""
    level = max_battery if max_battery is not None else Config.MAX_BATTERY
    return SimulationMetrics(
        battery_history=[MetricPoint(step=0, value=level)],
        exploration_rate=[MetricPoint(step=0, value=0)],
    )


def roi(metrics: SimulationMetrics) -> float:
    return metrics.value_generated - metrics.operational_cost


def update_metrics(
    prev: SimulationMetrics,
    battery_level: float,
    explored_count: int,
    total_cells: int,
    victims_rescued: int,
    fires_extinguished: int,
) -> SimulationMetrics:
    """Derive the next metrics snapshot after one executed tick.

    Battery consumption is accumulated from drops between consecutive history points,
    so recharging never lowers operational cost.
    """

    step = prev.steps_taken + 1
    last_level = prev.battery_history[-1].value if prev.battery_history else Config.MAX_BATTERY
    consumed = prev.battery_consumed_total + max(0.0, last_level - battery_level)
    exploration = round(100 * explored_count / total_cells) if total_cells else 0

    return SimulationMetrics(
        steps_taken=step,
        battery_history=[*prev.battery_history, MetricPoint(step=step, value=battery_level)],
        exploration_rate=[*prev.exploration_rate, MetricPoint(step=step, value=exploration)],
        operational_cost=step * COST_PER_STEP + consumed * COST_PER_BATTERY_PERCENT,
        value_generated=victims_rescued * VALUE_PER_RESCUE + fires_extinguished * VALUE_PER_HAZARD,
        battery_consumed_total=consumed,
    )
