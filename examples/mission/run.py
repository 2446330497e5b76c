"""Headless search-and-rescue mission runner.

Loads a scenario (built-in preset or examples/scenarios/*.json), runs the tick
scheduler without a UI and prints the mission summary.

Usage:
    # Rule-based oracle (no LLM, no API key)
    python -m examples.mission.run --scenario inferno --ticks 200

    # LLM oracle (requires LLM_PROVIDER, LLM_MODEL and the provider API key)
    python -m examples.mission.run --llm --scenario warehouse_fire

    # Write every log entry and metrics snapshot to a JSON Lines file
    python -m examples.mission.run --jsonl runs/mission.jsonl --verbose
"""

import argparse
import asyncio
from typing import Dict

from rescuebot import (
    InMemorySink,
    JsonlSink,
    LLMDecisionOracle,
    MissionOrchestrator,
    RuleBasedOracle,
    ScenarioLoader,
)
from rescuebot.config import Config
from rescuebot.logging_utils import (
    Color,
    colored,
    log_deterministic,
    log_error,
    log_oracle,
    log_success,
)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Autonomous search-and-rescue mission (headless)")
    parser.add_argument(
        "--scenario",
        default="random",
        help="Built-in preset id or file stem under examples/scenarios (default: random)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=300,
        help="Maximum number of ticks to simulate (default: 300)",
    )
    parser.add_argument(
        "--llm",
        action="store_true",
        help="Use the LLM decision oracle (requires LLM_PROVIDER and LLM_MODEL env vars)",
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help=f"Sleep TICK_RATE_MS ({Config.TICK_RATE_MS}ms) between ticks",
    )
    parser.add_argument("--jsonl", help="Append logs and metrics to this JSON Lines file")
    parser.add_argument("--verbose", action="store_true", help="Echo mission logs to the console")
    return parser.parse_args()


async def run_mission(args: argparse.Namespace) -> Dict:
    loader = ScenarioLoader()
    scenario, robot = loader.load(args.scenario)

    if args.llm:
        Config.validate()
        oracle = LLMDecisionOracle()
        print(Config.display())
        log_oracle(f"Oracle: {Config.LLM_PROVIDER}/{Config.LLM_MODEL}")
    else:
        oracle = RuleBasedOracle()
        log_deterministic("Oracle: rule-based (offline)")

    memory_sink = InMemorySink()
    sinks = [memory_sink]
    if args.jsonl:
        sinks.append(JsonlSink(args.jsonl))

    orchestrator = MissionOrchestrator(
        oracle,
        scenario,
        robot,
        tick_interval=None if args.realtime else 0,
        sinks=sinks,
        verbose=args.verbose,
    )

    print("=" * 60)
    print(colored(f"MISSION: {scenario.name}", Color.CYAN, bold=True))
    print("=" * 60)
    print(f"Robot: {robot.name} (speed x{robot.speed_multiplier}, drain x{robot.battery_drain_rate})")
    print(f"Hazards: {scenario.victim_count} victims, {scenario.fire_count} fires, density {scenario.obstacle_density}")
    print()

    result = await orchestrator.run(max_ticks=args.ticks)
    result["warnings"] = sum(1 for entry in memory_sink.logs if entry.severity.value == "WARNING")
    return result


def print_summary(result: Dict) -> None:
    robot = result["robot"]
    metrics = result["metrics"]

    print()
    print("=" * 60)
    if result["mission_failed"]:
        log_error("MISSION FAILED: battery depleted")
    else:
        log_success(f"Mission ended after {result['ticks']} ticks")
    print("=" * 60)
    print(f"  Victims rescued:    {robot.victims_rescued}")
    print(f"  Fires extinguished: {robot.fires_extinguished}")
    print(f"  Battery:            {robot.battery:.1f}%")
    print(f"  Explored:           {metrics.exploration_rate[-1].value:.0f}%")
    print(f"  Operational cost:   ${metrics.operational_cost:,.2f}")
    print(f"  Value generated:    ${metrics.value_generated:,.2f}")
    print(f"  ROI:                ${metrics.roi:,.2f}")
    print(f"  Warnings logged:    {result['warnings']}")


def main() -> None:
    args = parse_args()
    result = asyncio.run(run_mission(args))
    print_summary(result)


if __name__ == "__main__":
    main()
