"""
Mission orchestrator: the fixed-interval tick scheduler.

Fully decoupled from file I/O and providers. The decision oracle, sinks and
listeners are all injected by the caller.

Coordinates one tick as:
1. Recharge (docked robots only; nothing else happens that tick)
2. Perception scan around the robot
3. Decision phase (submit or collect a background oracle request)
4. Control step against the ground-truth grid
5. Telemetry update, sink emission and tick listeners

The scheduler is the only writer of the grid, robot state and metrics. The oracle
runs as an asyncio.Task that only ever sees deep copies; its result is applied on a
later tick, and only if the robot is still waiting for it.
"""

import asyncio
import random
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID, uuid4

from .config import Config
from .control import StepOutcome, execute_step
from .decision import DecisionOrchestrator, DecisionOutcome
from .environment import Grid, choose_exploration_target, generate, plan_path
from .errors import MissionHaltedError
from .logging_utils import echo_log_entry, log_info, verbose_enabled
from .oracle import DecisionOracle
from .perception import get_known_world, scan
from .scenario import SCENARIOS
from .schemas import (
    CHARGE_POINT,
    DEFAULT_ROBOT_PROFILE,
    CellType,
    Coordinates,
    DecisionAction,
    LogEntry,
    LogSeverity,
    RobotProfile,
    RobotState,
    RobotStatus,
    ScenarioProfile,
    SimulationMetrics,
    SystemModule,
)
from .sinks import TelemetrySink
from .state_machine import RobotStateMachine
from .telemetry import create_log, initial_metrics, update_metrics

TickListener = Callable[[int, RobotState, SimulationMetrics], None]


class MissionOrchestrator:
    """
    Tick scheduler for one robot in one generated world.

    Owns the ground-truth Grid, the RobotState, the SimulationMetrics, the robot state
    machine and the decision orchestrator.
    """

    def __init__(
        self,
        oracle: Optional[DecisionOracle] = None,
        scenario: Optional[ScenarioProfile] = None,
        robot: Optional[RobotProfile] = None,
        *,
        decisions: Optional[DecisionOrchestrator] = None,
        grid_size: Optional[int] = None,
        sensor_radius: Optional[int] = None,
        tick_interval: Optional[float] = None,
        sinks: Optional[List[TelemetrySink]] = None,
        tick_listeners: Optional[List[TickListener]] = None,
        rng: Optional[random.Random] = None,
        verbose: Optional[bool] = None,
    ):
        """Initialize the mission and generate the first world.

        Args:
            oracle: Decision oracle; wrapped in a DecisionOrchestrator with the default
                retry policy. Ignored when ``decisions`` is given.
            scenario: World generation profile (defaults to the "random" preset)
            robot: Robot hardware profile (defaults to the standard responder)
            decisions: Pre-built DecisionOrchestrator (e.g. with a fake sleep in tests)
            grid_size: Arena edge length (defaults to Config.GRID_SIZE)
            sensor_radius: Perception window half-width (defaults to Config.SENSOR_RADIUS)
            tick_interval: Seconds between ticks in run() (defaults to TICK_RATE_MS)
            sinks: Telemetry sinks receiving every LogEntry and metrics snapshot
            tick_listeners: Callables invoked after each executed tick with
                (tick, robot_state_snapshot, metrics)
            rng: Random source for exploration tie-breaks
            verbose: Echo log entries to the console (defaults to RESCUEBOT_VERBOSE)
        """
        if decisions is None:
            if oracle is None:
                raise ValueError("MissionOrchestrator needs an oracle or a DecisionOrchestrator")
            decisions = DecisionOrchestrator(oracle)
        self.decisions = decisions

        self.scenario = scenario or SCENARIOS["random"]
        self.robot_profile = robot or DEFAULT_ROBOT_PROFILE
        self.grid_size = grid_size or Config.GRID_SIZE
        self.sensor_radius = sensor_radius if sensor_radius is not None else Config.SENSOR_RADIUS
        self.tick_interval = (
            tick_interval if tick_interval is not None else Config.TICK_RATE_MS / 1000
        )
        self.max_battery = Config.MAX_BATTERY
        self.charging_rate = Config.CHARGING_RATE
        self.critical_battery = Config.CRITICAL_BATTERY

        self.sinks: List[TelemetrySink] = list(sinks or [])
        self.tick_listeners: List[TickListener] = tick_listeners or []
        self.verbose = verbose if verbose is not None else verbose_enabled()
        self._custom_rng = rng

        self._pending_logs: List[LogEntry] = []
        self._sinks_ready = False

        self._initialize()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _initialize(self) -> None:
        self.run_id: UUID = uuid4()
        self.grid: Grid = generate(self.scenario, self.grid_size)
        self.robot = RobotState(
            battery=self.max_battery,
            health=float(self.robot_profile.max_health),
        )
        self.metrics: SimulationMetrics = initial_metrics(self.max_battery)
        self.state_machine = RobotStateMachine()
        self.rng = self._custom_rng or random.Random(self.scenario.seed)
        self.tick_count = 0
        # Cells mutated by the last executed tick (reveals and hazard clears).
        self.changed_cells: List[Coordinates] = []
        self.running = True
        self.mission_failed = False

        self._log(
            SystemModule.SIMULATION,
            f"Scenario loaded: {self.scenario.name} with {self.robot_profile.name}.",
        )
        for cell_type, requested in (
            (CellType.VICTIM, self.scenario.victim_count),
            (CellType.FIRE, self.scenario.fire_count),
        ):
            placed = self.grid.count(cell_type)
            if placed < requested:
                self._log(
                    SystemModule.SIMULATION,
                    f"Placed {placed} of {requested} {cell_type.value} cells; the arena ran out of room.",
                )

    def reset(
        self,
        scenario: Optional[ScenarioProfile] = None,
        robot: Optional[RobotProfile] = None,
    ) -> None:
        """Drop any outstanding decision, regenerate the world and reinitialize the robot."""
        self.decisions.cancel()
        if scenario is not None:
            self.scenario = scenario
        if robot is not None:
            self.robot_profile = robot
        self._initialize()

    def emergency_stop(self) -> None:
        """Halt immediately. Only reset() brings the robot back."""
        self.decisions.cancel()
        self._transition(RobotStatus.EMERGENCY_STOP, "operator emergency stop")
        self.robot.path = []
        self.running = False
        self._log(
            SystemModule.SAFETY,
            "EMERGENCY STOP TRIGGERED BY OPERATOR. ALL SYSTEMS HALTED.",
            LogSeverity.ERROR,
        )

    def pause(self) -> None:
        if self.running:
            self.running = False
            self._log(SystemModule.SIMULATION, "Mission paused.")

    def resume(self) -> None:
        """Resume a paused mission.

        Raises:
            MissionHaltedError: after an emergency stop or a failed mission
        """
        if self.state_machine.is_terminal:
            raise MissionHaltedError("emergency stop is active")
        if self.mission_failed:
            raise MissionHaltedError("battery depleted")
        if not self.running:
            self.running = True
            self._log(SystemModule.SIMULATION, "Mission resumed.")

    @property
    def halted(self) -> bool:
        return not self.running or self.mission_failed or self.state_machine.is_terminal

    @property
    def mission_complete(self) -> bool:
        """True once no victims or fires remain in the ground-truth world."""
        return self.grid.count(CellType.VICTIM) == 0 and self.grid.count(CellType.FIRE) == 0

    def snapshot(self) -> RobotState:
        return self.robot.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def run(self, max_ticks: Optional[int] = None) -> Dict[str, Any]:
        """Tick until halted, complete, or ``max_ticks`` ticks have run.

        Returns:
            Dict with run_id, ticks, robot (snapshot), metrics and mission_failed
        """
        if self.verbose:
            log_info(f"Starting mission run {self.run_id} ({self.scenario.name})")

        ticks = 0
        try:
            while max_ticks is None or ticks < max_ticks:
                if self.halted or self.mission_complete:
                    break
                await self.tick()
                ticks += 1
                if self.tick_interval > 0:
                    await asyncio.sleep(self.tick_interval)

            return {
                "run_id": self.run_id,
                "ticks": ticks,
                "robot": self.snapshot(),
                "metrics": self.metrics,
                "mission_failed": self.mission_failed,
            }
        finally:
            await self._flush_logs()
            for sink in self.sinks:
                await sink.close()
            self._sinks_ready = False

    async def tick(self) -> bool:
        """Execute one tick. Returns False (and does nothing) while halted."""
        if self.halted:
            await self._flush_logs()
            return False

        self.tick_count += 1
        try:
            await self._run_tick(self.tick_count)
        finally:
            self.changed_cells = self.grid.drain_dirty()
            await self._flush_logs()
        return True

    async def _run_tick(self, tick: int) -> None:
        robot = self.robot

        if self._check_battery():
            return

        # 1. Recharging consumes the whole tick.
        if robot.status is RobotStatus.RECHARGING:
            self._recharge()
            return

        # 2. Sensors read the ground truth and grow the belief grid.
        self._perceive()

        # 3. Decision phase. Control only runs once the robot has a path to follow.
        if not await self._decision_phase():
            return

        # 4. Control step.
        self._control_step()
        self._check_battery()

        # 5. Telemetry.
        await self._record_telemetry(tick)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _recharge(self) -> None:
        robot = self.robot
        robot.battery = min(self.max_battery, robot.battery + self.charging_rate)
        if robot.battery >= self.max_battery:
            self._transition(RobotStatus.IDLE, "battery full")
            self._log(
                SystemModule.CONTROL,
                "Battery fully charged. Resuming mission.",
                LogSeverity.SUCCESS,
            )

    def _perceive(self) -> None:
        result = scan(self.grid, self.robot.position, self.sensor_radius)
        if not result.updated:
            return
        for coords in result.newly_revealed:
            cell_type = self.grid.at(coords).type
            if cell_type is CellType.VICTIM:
                self._log(SystemModule.PERCEPTION, f"Victim signature detected at {coords}.")
            elif cell_type is CellType.FIRE:
                self._log(SystemModule.PERCEPTION, f"Thermal hazard detected at {coords}.")

    async def _decision_phase(self) -> bool:
        """Advance the decision cycle. Returns True when control should run this tick."""
        robot = self.robot

        if self.decisions.has_pending:
            if self.decisions.in_flight:
                # Give the oracle task a chance to finish before deciding to wait.
                await asyncio.sleep(0)
            outcome = self.decisions.take_result()
            # Every path out of PLANNING cancels the request, so a collected
            # outcome always finds the robot still PLANNING.
            if outcome is None:
                return False
            self._apply_decision(outcome)

        if robot.status in (RobotStatus.MOVING, RobotStatus.ACTING) and robot.path:
            return True
        if robot.status is RobotStatus.RECHARGING:
            return False

        self._begin_planning()
        return False

    def _begin_planning(self) -> None:
        robot = self.robot
        if robot.status in (RobotStatus.MOVING, RobotStatus.ACTING):
            self._transition(RobotStatus.IDLE, "path exhausted")

        if robot.position == CHARGE_POINT and robot.battery < self.max_battery:
            self._transition(RobotStatus.RECHARGING, "docked below full charge")
            self._log(SystemModule.CONTROL, "Docked at charging station. Initiating recharge sequence.")
            return

        if robot.status is RobotStatus.IDLE and robot.battery < self.critical_battery:
            self._transition(RobotStatus.CRITICAL, "battery below critical threshold")
            self._log(
                SystemModule.SAFETY,
                f"Battery critical ({robot.battery:.1f}%). Requesting return to base.",
                LogSeverity.WARNING,
            )

        # The oracle sees the status the robot asked from, so CRITICAL reaches it.
        request_state = robot.model_copy(deep=True)
        self._transition(RobotStatus.PLANNING, "requesting decision")
        self._log(SystemModule.INTELLIGENCE, "Acquiring situational awareness...")
        self.decisions.submit(request_state, get_known_world(self.grid), grid_size=self.grid_size)

    def _apply_decision(self, outcome: DecisionOutcome) -> None:
        robot = self.robot
        decision = outcome.decision

        for fault in outcome.faults:
            self._log(SystemModule.INTELLIGENCE, fault, LogSeverity.WARNING)
        self._log(
            SystemModule.INTELLIGENCE,
            f"Strategy: {decision.action.value} ({decision.priority.value}) - {decision.reasoning}",
            LogSeverity.WARNING if outcome.fallback else LogSeverity.SUCCESS,
        )

        goal: Optional[Coordinates] = None
        target = decision.target_coordinates

        if decision.action is DecisionAction.RECHARGE:
            if robot.position == CHARGE_POINT:
                robot.path = []
                robot.current_goal = None
                self._transition(RobotStatus.RECHARGING, "recharge ordered at base")
                self._log(SystemModule.CONTROL, "Docked at charging station. Initiating recharge sequence.")
                return
            goal = CHARGE_POINT
            self._log(SystemModule.PLANNING, "Returning to base for recharge.", LogSeverity.WARNING)
        elif target is not None:
            if self.grid.in_bounds(target.x, target.y):
                goal = target
            else:
                self._log(
                    SystemModule.PLANNING,
                    f"Target {target} lies outside the {self.grid_size}x{self.grid_size} arena.",
                    LogSeverity.WARNING,
                )
        elif decision.action is DecisionAction.EXPLORE:
            goal = choose_exploration_target(self.grid, robot.position, self.rng)
            if goal is None:
                self._log(SystemModule.PLANNING, "Arena fully explored. No frontier left.")
            else:
                self._log(SystemModule.PLANNING, f"Exploration vector calculated toward {goal}.")
        else:
            self._log(
                SystemModule.PLANNING,
                f"{decision.action.value} decision carried no target coordinates.",
                LogSeverity.WARNING,
            )

        path = plan_path(robot.position, goal, self.grid) if goal is not None else []
        robot.current_goal = goal
        robot.path = path

        if path:
            self._transition(RobotStatus.MOVING, f"path to {goal}")
            self._log(SystemModule.PLANNING, f"Path computed: {len(path)} steps to {goal}.")
        else:
            self._transition(RobotStatus.IDLE, "no viable path")
            self._log(SystemModule.PLANNING, "No viable path to target. Aborting.", LogSeverity.WARNING)

    def _control_step(self) -> None:
        robot = self.robot
        if robot.status is RobotStatus.ACTING:
            self._transition(RobotStatus.MOVING, "resuming path")

        next_pos = robot.path[0]
        cell = self.grid.get(next_pos.x, next_pos.y)
        if cell is None:
            self._abort_path(f"INVALID STEP {robot.position} -> {next_pos}: outside the arena")
            return

        result = execute_step(robot.position, next_pos, robot.battery, cell.type, self.robot_profile)
        if not result.success:
            self._abort_path(result.message)
            return

        # Commit the evaluated step.
        robot.battery = result.new_battery
        if result.outcome is StepOutcome.SUPPRESSED:
            self.grid.set_type(next_pos, CellType.DEBRIS)
            robot.fires_extinguished += 1
            self._transition(RobotStatus.ACTING, "fire suppression")
            self._log(SystemModule.CONTROL, result.message, LogSeverity.SUCCESS)
        elif result.outcome is StepOutcome.RESCUED:
            self.grid.set_type(next_pos, CellType.EMPTY)
            robot.position = next_pos
            robot.path = robot.path[1:]
            robot.victims_rescued += 1
            self._transition(RobotStatus.ACTING, "victim rescue")
            self._log(SystemModule.CONTROL, result.message, LogSeverity.SUCCESS)
        else:
            robot.position = next_pos
            robot.path = robot.path[1:]
            self._transition(RobotStatus.MOVING)

        if result.outcome is not StepOutcome.MOVED and self.mission_complete:
            self._log(
                SystemModule.SIMULATION,
                "All victims secured and hazards cleared. Mission complete.",
                LogSeverity.SUCCESS,
            )

        if not robot.path:
            if robot.position == CHARGE_POINT and robot.battery < self.max_battery:
                self._transition(RobotStatus.RECHARGING, "path ended at base")
                self._log(SystemModule.CONTROL, "Docked. Charging...")
            else:
                self._transition(RobotStatus.IDLE, "path complete")

    def _abort_path(self, message: str) -> None:
        self._log(SystemModule.CONTROL, message or "Movement error", LogSeverity.WARNING)
        self.robot.path = []
        self._transition(RobotStatus.IDLE, "path aborted")

    def _check_battery(self) -> bool:
        """Fail the mission when the battery is empty outside a charge cycle."""
        robot = self.robot
        if robot.battery > 0 or robot.status is RobotStatus.RECHARGING or self.mission_failed:
            return self.mission_failed
        self.mission_failed = True
        self.running = False
        robot.path = []
        self.decisions.cancel()
        self._log(SystemModule.SAFETY, "BATTERY DEPLETED. MISSION FAILED.", LogSeverity.ERROR)
        return True

    async def _record_telemetry(self, tick: int) -> None:
        robot = self.robot
        self.metrics = update_metrics(
            self.metrics,
            robot.battery,
            self.grid.explored_count(),
            self.grid.total_cells,
            robot.victims_rescued,
            robot.fires_extinguished,
        )

        await self._ensure_sinks()
        for sink in self.sinks:
            await sink.emit_metrics(tick, self.metrics)

        # Listener failures are reported but never stop the mission.
        if self.tick_listeners:
            snapshot = self.snapshot()
            for listener in self.tick_listeners:
                try:
                    listener(tick, snapshot, self.metrics)
                except Exception as exc:  # pragma: no cover - diagnostic hook
                    self._log(SystemModule.TELEMETRY, f"Tick listener failed: {exc}", LogSeverity.WARNING)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _transition(self, target: RobotStatus, reason: Optional[str] = None) -> None:
        self.robot.status = self.state_machine.transition(target, reason)

    def _log(
        self,
        source: SystemModule,
        message: str,
        severity: LogSeverity = LogSeverity.INFO,
    ) -> None:
        entry = create_log(source, message, severity)
        self.robot.logs.append(entry)
        self._pending_logs.append(entry)
        if self.verbose:
            echo_log_entry(entry)

    async def _ensure_sinks(self) -> None:
        if self._sinks_ready:
            return
        for sink in self.sinks:
            await sink.initialize()
        self._sinks_ready = True

    async def _flush_logs(self) -> None:
        if not self._pending_logs:
            return
        await self._ensure_sinks()
        entries, self._pending_logs = self._pending_logs, []
        for entry in entries:
            for sink in self.sinks:
                await sink.emit_log(entry)
