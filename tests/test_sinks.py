"""Tests for telemetry sinks."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from rescuebot.orchestrator import MissionOrchestrator
from rescuebot.schemas import (
    Decision,
    DecisionAction,
    DecisionPriority,
    LogSeverity,
    ScenarioProfile,
    SystemModule,
)
from rescuebot.sinks import InMemorySink, JsonlSink
from rescuebot.telemetry import create_log, initial_metrics, update_metrics


@pytest.mark.asyncio
async def test_in_memory_sink_records_everything():
    sink = InMemorySink()
    entry = create_log(SystemModule.CONTROL, "Docked. Charging...")
    metrics = update_metrics(initial_metrics(), 99.5, 9, 225, 0, 0)

    await sink.initialize()
    await sink.emit_log(entry)
    await sink.emit_metrics(1, metrics)
    await sink.close()

    assert sink.logs == [entry]
    assert sink.metrics == [(1, metrics)]
    assert sink.closed is True


@pytest.mark.asyncio
async def test_jsonl_sink_appends_records(tmp_path):
    path = tmp_path / "logs" / "mission.jsonl"
    sink = JsonlSink(path)
    entry = create_log(SystemModule.SAFETY, "BATTERY DEPLETED. MISSION FAILED.", LogSeverity.ERROR)
    metrics = update_metrics(initial_metrics(), 95.0, 20, 100, 1, 0)

    await sink.initialize()
    await sink.emit_log(entry)
    await sink.emit_metrics(7, metrics)
    await sink.close()

    records = [json.loads(line) for line in path.read_text().splitlines()]
    assert [record["kind"] for record in records] == ["log", "metrics"]
    assert records[0]["id"] == str(entry.id)
    assert records[0]["severity"] == "ERROR"
    assert records[0]["source"] == "SAFETY_SYSTEM"
    assert records[1]["tick"] == 7
    assert records[1]["roi"] == pytest.approx(metrics.roi)
    assert records[1]["value_generated"] == 5000.0


@pytest.mark.asyncio
async def test_orchestrator_flushes_every_log_to_sinks(tmp_path):
    memory = InMemorySink()
    path = tmp_path / "run.jsonl"
    oracle = SimpleNamespace(
        decide=AsyncMock(
            return_value=Decision(
                reasoning="Look around.", action=DecisionAction.EXPLORE, priority=DecisionPriority.LOW
            )
        )
    )
    scenario = ScenarioProfile(
        id="field", name="Open Field", obstacle_density=0.0, victim_count=1, fire_count=0, seed=11
    )
    mission = MissionOrchestrator(
        oracle, scenario, grid_size=8, tick_interval=0, sinks=[memory, JsonlSink(path)], verbose=False
    )

    await mission.run(max_ticks=5)

    assert memory.closed is True
    assert [entry.id for entry in memory.logs] == [entry.id for entry in mission.robot.logs]
    lines = [json.loads(line) for line in path.read_text().splitlines()]
    assert sum(1 for record in lines if record["kind"] == "log") == len(mission.robot.logs)
    assert sum(1 for record in lines if record["kind"] == "metrics") == len(memory.metrics)


class ReopeningSink(InMemorySink):
    def __init__(self) -> None:
        super().__init__()
        self.opened = 0

    async def initialize(self) -> None:
        self.opened += 1
        self.closed = False

    async def emit_log(self, entry) -> None:
        assert not self.closed, "log emitted to a closed sink"
        await super().emit_log(entry)

    async def emit_metrics(self, tick, metrics) -> None:
        assert not self.closed, "metrics emitted to a closed sink"
        await super().emit_metrics(tick, metrics)


@pytest.mark.asyncio
async def test_second_run_reopens_closed_sinks():
    sink = ReopeningSink()
    oracle = SimpleNamespace(
        decide=AsyncMock(
            return_value=Decision(
                reasoning="Look around.", action=DecisionAction.EXPLORE, priority=DecisionPriority.LOW
            )
        )
    )
    scenario = ScenarioProfile(
        id="field", name="Open Field", obstacle_density=0.0, victim_count=1, fire_count=0, seed=11
    )
    mission = MissionOrchestrator(oracle, scenario, grid_size=8, tick_interval=0, sinks=[sink], verbose=False)

    await mission.run(max_ticks=3)
    first_run_metrics = len(sink.metrics)
    await mission.run(max_ticks=3)

    assert sink.opened == 2
    assert sink.closed is True
    assert len(sink.metrics) > first_run_metrics
    assert [entry.id for entry in sink.logs] == [entry.id for entry in mission.robot.logs]
