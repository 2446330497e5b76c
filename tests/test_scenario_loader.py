"""Tests for scenario loading via ScenarioLoader."""

import json

import pytest

from rescuebot.config import Config
from rescuebot.scenario import ROBOT_PROFILES, SCENARIOS, ScenarioLoader, load_scenario
from rescuebot.schemas import DEFAULT_ROBOT_PROFILE


def write_scenario(directory, name, payload):
    path = directory / f"{name}.json"
    path.write_text(json.dumps(payload))
    return path


def test_builtin_presets_load_by_id(tmp_path):
    loader = ScenarioLoader(scenarios_dir=tmp_path)

    scenario, robot = loader.load("inferno")

    assert scenario.name == "Industrial Fire"
    assert scenario.fire_count == 12
    assert scenario.victim_count == 4
    assert robot == DEFAULT_ROBOT_PROFILE
    assert set(SCENARIOS) == {"random", "dense_debris", "inferno", "search_party"}


def test_json_scenario_with_named_robot(tmp_path):
    write_scenario(
        tmp_path,
        "warehouse",
        {
            "scenario": {
                "id": "warehouse",
                "name": "Warehouse",
                "obstacle_density": 0.3,
                "victim_count": 2,
                "fire_count": 5,
                "seed": 42,
            },
            "robot": "heavy",
        },
    )

    scenario, robot = ScenarioLoader(tmp_path).load("warehouse")

    assert scenario.seed == 42
    assert scenario.fire_count == 5
    assert robot is ROBOT_PROFILES["heavy"]


def test_out_of_range_values_are_clamped(tmp_path):
    write_scenario(
        tmp_path,
        "sloppy",
        {
            "scenario": {
                "id": "sloppy",
                "name": "Sloppy",
                "obstacle_density": 3.0,
                "victim_count": -2,
                "fire_count": 2.6,
            },
            "robot": {
                "id": "custom",
                "name": "Custom",
                "speed_multiplier": 9,
                "battery_drain_rate": 0.1,
                "max_health": 500,
            },
        },
    )

    scenario, robot = load_scenario("sloppy", tmp_path)

    assert scenario.obstacle_density == 1.0
    assert scenario.victim_count == 0
    assert scenario.fire_count == 3
    assert robot.speed_multiplier == 2.0
    assert robot.battery_drain_rate == 0.5
    assert robot.max_health == 150


def test_builtin_scenario_reference_in_file(tmp_path):
    write_scenario(tmp_path, "scouting", {"scenario": "search_party", "robot": "scout"})

    scenario, robot = ScenarioLoader(tmp_path).load("scouting")

    assert scenario is SCENARIOS["search_party"]
    assert robot.id == "scout"


def test_invalid_files_raise(tmp_path):
    write_scenario(tmp_path, "no_block", {"robot": "heavy"})
    write_scenario(tmp_path, "bad_robot", {"scenario": "random", "robot": "tank"})
    loader = ScenarioLoader(tmp_path)

    with pytest.raises(FileNotFoundError):
        loader.load("atlantis")
    with pytest.raises(ValueError):
        loader.load("no_block")
    with pytest.raises(ValueError):
        loader.load("bad_robot")


def test_available_lists_builtins_and_files(tmp_path):
    write_scenario(tmp_path, "custom_zone", {"scenario": "random"})

    names = ScenarioLoader(tmp_path).available()

    assert "custom_zone" in names
    assert "inferno" in names


def test_bundled_example_scenarios_load():
    loader = ScenarioLoader(Config.SCENARIOS_DIR)

    scenario, robot = loader.load("warehouse_fire")
    assert scenario.seed is not None
    assert robot.id == "heavy"

    scenario, robot = loader.load("collapsed_school")
    assert scenario.obstacle_density == pytest.approx(0.4)
