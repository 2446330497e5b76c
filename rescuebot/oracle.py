"""
Decision oracle adapters.

The oracle answers "what should the robot do next?" given robot telemetry and the
known (revealed) part of the world. The core treats it as opaque: anything with an
``async decide(request) -> Decision`` method works. Two adapters ship here:

- LLMDecisionOracle: provider-agnostic LLM call through Mirascope
- RuleBasedOracle: deterministic heuristics, no network, used for offline runs and tests

Neither adapter retries or falls back; DecisionOrchestrator owns that policy.
"""

from typing import List, Optional, Protocol

from rescuebot.config import Config
from rescuebot.environment import Cell, Grid, plan_path
from rescuebot.llm_utils import call_structured_llm
from rescuebot.perception import build_oracle_perception
from rescuebot.schemas import (
    CHARGE_POINT,
    CellType,
    Coordinates,
    Decision,
    DecisionAction,
    DecisionPriority,
    DecisionRequest,
    OracleTelemetry,
    RobotState,
)


SYSTEM_PROMPT = """
You are the tactical decision layer of an autonomous search-and-rescue robot.
You choose the next high-level maneuver from the robot's telemetry and the part of
the map it has already sensed.

Mission objectives:
1. Search: reveal the map to find victims.
2. Rescue: reach and secure victims. This is the top priority.
3. Safety: watch the battery; extinguish fires that block access.
4. Efficiency: every step costs money, avoid needless backtracking.

Perception only lists cells the robot has revealed; anything else is unknown.

Protocol:
- If a VICTIM is known, plan a rescue (action RESCUE with its coordinates).
- If FIRE blocks the way, extinguish it (action EXTINGUISH with its coordinates).
- Otherwise explore a frontier cell at the edge of the known map (action EXPLORE).
- Safety rule: when battery is below 20% or status is CRITICAL you MUST return to
  the charge point (0,0): action RECHARGE with targetCoordinates {"x": 0, "y": 0}.

Respond with JSON containing reasoning, action (MOVE|RESCUE|EXTINGUISH|EXPLORE|RECHARGE),
optional targetCoordinates {"x": int, "y": int}, and priority (HIGH|MEDIUM|LOW).
"""


class DecisionOracle(Protocol):
    """Anything that can turn a DecisionRequest into a Decision."""

    async def decide(self, request: DecisionRequest) -> Decision:
        ...


def build_decision_request(robot: RobotState, known_world: List[Cell], grid_size: int) -> DecisionRequest:
    """Assemble the oracle payload from a robot snapshot and the known cells."""

    return DecisionRequest(
        telemetry=OracleTelemetry(
            battery=robot.battery,
            health=robot.health,
            position=robot.position,
            status=robot.status,
        ),
        perception=build_oracle_perception(known_world, robot.position),
        grid_size=grid_size,
    )


def belief_grid(request: DecisionRequest) -> Grid:
    """Rebuild the robot's belief grid from a request; unlisted cells stay unrevealed."""
    grid = Grid.empty(request.grid_size)
    for known in request.perception:
        cell = grid.get(known.x, known.y)
        if cell is not None:
            cell.type = known.type
            cell.revealed = True
    return grid


class LLMDecisionOracle:
    """Oracle backed by an LLM via Mirascope's provider-agnostic call decorator."""

    def __init__(
        self,
        llm_provider: Optional[str] = None,
        llm_model: Optional[str] = None,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        timeout: Optional[float] = None,
    ) -> None:
        self.llm_provider = llm_provider or Config.LLM_PROVIDER
        self.llm_model = llm_model or Config.LLM_MODEL
        self.system_prompt = system_prompt
        self.timeout = timeout if timeout is not None else Config.ORACLE_TIMEOUT_SECONDS

    async def decide(self, request: DecisionRequest) -> Decision:
        request_json = request.model_dump_json(indent=2)
        user_prompt = f"""
World model state (grid {request.grid_size}x{request.grid_size}):

{request_json}

Determine the next tactical maneuver for maximum ROI and safety.
Output JSON matching the Decision schema.
"""
        return await call_structured_llm(
            system_prompt=self.system_prompt,
            user_prompt=user_prompt,
            llm_provider=self.llm_provider,
            llm_model=self.llm_model,
            response_model=Decision,
            timeout=self.timeout,
        )


class RuleBasedOracle:
    """Deterministic oracle: recharge when low, then rescue, then extinguish, else explore.

    Victims and fires are only targeted when a path to them exists on the belief grid
    rebuilt from the request, so a hazard sealed behind revealed walls is ignored.
    """

    def __init__(self, critical_battery: Optional[float] = None) -> None:
        self.critical_battery = (
            critical_battery if critical_battery is not None else Config.CRITICAL_BATTERY
        )

    async def decide(self, request: DecisionRequest) -> Decision:
        telemetry = request.telemetry

        if telemetry.battery < self.critical_battery and telemetry.position != CHARGE_POINT:
            return Decision(
                reasoning=f"Battery at {telemetry.battery:.1f}%: returning to base.",
                action=DecisionAction.RECHARGE,
                target_coordinates=CHARGE_POINT,
                priority=DecisionPriority.HIGH,
            )

        belief = belief_grid(request)
        victim = self._nearest(request, belief, CellType.VICTIM)
        if victim is not None:
            return Decision(
                reasoning=f"Victim detected at {victim}; moving to rescue.",
                action=DecisionAction.RESCUE,
                target_coordinates=victim,
                priority=DecisionPriority.HIGH,
            )

        fire = self._nearest(request, belief, CellType.FIRE)
        if fire is not None:
            return Decision(
                reasoning=f"Fire detected at {fire}; suppressing hazard.",
                action=DecisionAction.EXTINGUISH,
                target_coordinates=fire,
                priority=DecisionPriority.MEDIUM,
            )

        return Decision(
            reasoning="No known targets; exploring the frontier.",
            action=DecisionAction.EXPLORE,
            priority=DecisionPriority.LOW,
        )

    @staticmethod
    def _nearest(request: DecisionRequest, belief: Grid, cell_type: CellType) -> Optional[Coordinates]:
        matches = sorted(
            (cell for cell in request.perception if cell.type is cell_type),
            key=lambda cell: (cell.relative_distance, cell.y, cell.x),
        )
        for cell in matches:
            target = Coordinates(x=cell.x, y=cell.y)
            if plan_path(request.telemetry.position, target, belief):
                return target
        return None
