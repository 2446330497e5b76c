"""
Scenario loading: built-in presets and JSON-defined mission profiles.

A mission is configured by two profiles:
- ScenarioProfile: how the disaster zone is generated (obstacle density, victims, fires, seed)
- RobotProfile: the responder hardware (speed, battery efficiency, health)

Profiles are data, not code. Numeric fields are clamped into their legal range by the
schemas, so a hand-edited file never crashes mission start.

Scenario file structure:
```json
{
  "scenario": {
    "id": "warehouse",
    "name": "Warehouse Fire",
    "description": "...",
    "obstacle_density": 0.3,
    "victim_count": 2,
    "fire_count": 6,
    "seed": 42
  },
  "robot": "heavy"
}
```

``robot`` is either the id of a built-in robot profile or a full RobotProfile object.
It may be omitted, in which case the standard responder is used.

Usage:
    loader = ScenarioLoader()
    scenario, robot = loader.load("inferno")       # built-in preset
    scenario, robot = loader.load("warehouse")     # examples/scenarios/warehouse.json
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import Config
from .schemas import DEFAULT_ROBOT_PROFILE, RobotProfile, ScenarioProfile


SCENARIOS: Dict[str, ScenarioProfile] = {
    profile.id: profile
    for profile in (
        ScenarioProfile(
            id="random",
            name="Procedural Random",
            description="Standard randomized disaster zone generation.",
            obstacle_density=0.2,
            victim_count=3,
            fire_count=4,
        ),
        ScenarioProfile(
            id="dense_debris",
            name="Urban Collapse",
            description="High debris density simulating a collapsed building. Navigation is difficult.",
            obstacle_density=0.45,
            victim_count=2,
            fire_count=2,
        ),
        ScenarioProfile(
            id="inferno",
            name="Industrial Fire",
            description="Extreme fire hazards. Suppression is critical for access.",
            obstacle_density=0.15,
            victim_count=4,
            fire_count=12,
        ),
        ScenarioProfile(
            id="search_party",
            name="Wide Area Search",
            description="Low obstacles, sparse victims. Tests exploration efficiency.",
            obstacle_density=0.05,
            victim_count=5,
            fire_count=0,
        ),
    )
}

ROBOT_PROFILES: Dict[str, RobotProfile] = {
    profile.id: profile
    for profile in (
        RobotProfile(
            id="scout",
            name="Scout Drone",
            description="Fast and light. Covers ground quickly but burns through its battery.",
            speed_multiplier=1.5,
            battery_drain_rate=1.2,
            max_health=80,
        ),
        DEFAULT_ROBOT_PROFILE,
        RobotProfile(
            id="heavy",
            name="Heavy Rescue Unit",
            description="Slow, armored and efficient. Built for long missions in hostile zones.",
            speed_multiplier=0.7,
            battery_drain_rate=0.8,
            max_health=120,
        ),
    )
}


class ScenarioLoader:
    """Resolve mission profiles from built-in presets or JSON files.

    Lookup order for ``load(name)``:
    1. ``{scenarios_dir}/{name}.json`` if it exists
    2. The built-in SCENARIOS preset with that id

    Raises FileNotFoundError when neither exists and ValueError when a file is missing
    its ``scenario`` block or names an unknown robot profile.
    """

    def __init__(self, scenarios_dir: Optional[Path] = None):
        """Initialize scenario loader.

        Args:
            scenarios_dir: Directory containing scenario files.
                          Defaults to Config.SCENARIOS_DIR (examples/scenarios)
        """
        self.scenarios_dir = Path(scenarios_dir) if scenarios_dir else Config.SCENARIOS_DIR

    def available(self) -> List[str]:
        """Names accepted by load(): built-ins plus any JSON files on disk."""
        names = set(SCENARIOS)
        if self.scenarios_dir.is_dir():
            names.update(path.stem for path in self.scenarios_dir.glob("*.json"))
        return sorted(names)

    def load(self, scenario_name: str) -> Tuple[ScenarioProfile, RobotProfile]:
        """Load a scenario and its robot profile by name.

        Args:
            scenario_name: File stem (without .json) or built-in scenario id

        Returns:
            Tuple of (ScenarioProfile, RobotProfile) ready for MissionOrchestrator
        """
        scenario_path = self.scenarios_dir / f"{scenario_name}.json"

        if scenario_path.exists():
            data = json.loads(scenario_path.read_text())
            return self.parse(data)

        if scenario_name in SCENARIOS:
            return SCENARIOS[scenario_name], DEFAULT_ROBOT_PROFILE

        raise FileNotFoundError(
            f"Scenario '{scenario_name}' not found at {scenario_path} "
            f"and is not a built-in preset ({', '.join(sorted(SCENARIOS))})"
        )

    def parse(self, data: Dict[str, Any]) -> Tuple[ScenarioProfile, RobotProfile]:
        """Build profiles from an already-decoded scenario document."""

        if "scenario" not in data:
            raise ValueError("Scenario file missing required field: 'scenario'")

        scenario_data = data["scenario"]
        if isinstance(scenario_data, str):
            if scenario_data not in SCENARIOS:
                raise ValueError(f"Unknown built-in scenario '{scenario_data}'")
            scenario = SCENARIOS[scenario_data]
        else:
            scenario = ScenarioProfile.model_validate(scenario_data)

        robot = self._parse_robot(data.get("robot"))
        return scenario, robot

    def _parse_robot(self, raw: Any) -> RobotProfile:
        if raw is None:
            return DEFAULT_ROBOT_PROFILE
        if isinstance(raw, str):
            if raw not in ROBOT_PROFILES:
                raise ValueError(
                    f"Unknown robot profile '{raw}'. Available: {', '.join(ROBOT_PROFILES)}"
                )
            return ROBOT_PROFILES[raw]
        return RobotProfile.model_validate(raw)


def load_scenario(
    scenario_name: str, scenarios_dir: Optional[Path] = None
) -> Tuple[ScenarioProfile, RobotProfile]:
    """Convenience wrapper around ScenarioLoader(...).load(name)."""
    return ScenarioLoader(scenarios_dir).load(scenario_name)
