"""
Telemetry sinks: where mission logs and metrics snapshots go.

Sinks are optional. A mission runs fine with none; the robot keeps its own log
history in ``RobotState.logs`` either way. Two implementations ship here:

1. InMemorySink - lists in process memory (tests, notebooks)
2. JsonlSink - append-only JSON Lines file, one record per line (offline analysis)

Record format written by JsonlSink:
    {"kind": "log", "id": ..., "timestamp": ..., "message": ..., "source": ..., "severity": ...}
    {"kind": "metrics", "tick": 12, "roi": ..., "steps_taken": ..., ...}

All methods are async so file I/O can run in a worker thread without blocking the
tick loop.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Tuple

from rescuebot.schemas import LogEntry, SimulationMetrics


class TelemetrySink(ABC):
    """Abstract destination for LogEntry records and metrics snapshots."""

    async def initialize(self) -> None:
        """Prepare the sink before the first tick. Default: nothing to do."""
        return None

    @abstractmethod
    async def emit_log(self, entry: LogEntry) -> None:
        """Record one log entry. Entries arrive in creation order."""

    @abstractmethod
    async def emit_metrics(self, tick: int, metrics: SimulationMetrics) -> None:
        """Record the metrics snapshot produced by ``tick``."""

    async def close(self) -> None:
        """Flush and release resources. Default: nothing to do."""
        return None


class InMemorySink(TelemetrySink):
    """Keeps everything in lists. Data survives close() for post-run reads."""

    def __init__(self) -> None:
        self.logs: List[LogEntry] = []
        self.metrics: List[Tuple[int, SimulationMetrics]] = []
        self.closed = False

    async def emit_log(self, entry: LogEntry) -> None:
        self.logs.append(entry)

    async def emit_metrics(self, tick: int, metrics: SimulationMetrics) -> None:
        self.metrics.append((tick, metrics))

    async def close(self) -> None:
        self.closed = True


class JsonlSink(TelemetrySink):
    """Appends one JSON object per line to ``path``."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    async def initialize(self) -> None:
        await asyncio.to_thread(self.path.parent.mkdir, parents=True, exist_ok=True)

    async def emit_log(self, entry: LogEntry) -> None:
        await self._append({"kind": "log", **entry.model_dump(mode="json")})

    async def emit_metrics(self, tick: int, metrics: SimulationMetrics) -> None:
        payload = metrics.model_dump(mode="json")
        await self._append({"kind": "metrics", "tick": tick, "roi": metrics.roi, **payload})

    async def _append(self, record: Dict[str, Any]) -> None:
        line = json.dumps(record) + "\n"

        def _write() -> None:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line)

        await asyncio.to_thread(_write)
