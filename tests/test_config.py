"""
Tests for configuration loading, unit conversion and the command-line entry point.
"""

import json

import pytest
from dispersal_sim import InvalidParameterError, MortalityConfig, SimulationConfig, load_config
from dispersal_sim.cli import expected_survival, main
from dispersal_sim.units import from_seconds, to_seconds, unit_seconds


def test_unit_seconds():
    """Unit names are case-insensitive and accept plurals and short forms."""
    assert unit_seconds("Days") == 86400.0
    assert unit_seconds("day") == 86400.0
    assert unit_seconds("HOURS") == 3600.0
    assert unit_seconds("min") == 60.0
    assert unit_seconds("ms") == 1e-3
    assert to_seconds(2.0, "hours") == 7200.0
    assert from_seconds(43200.0, "Days") == 0.5


def test_unknown_unit():
    with pytest.raises(InvalidParameterError):
        unit_seconds("parsecs")


def test_defaults():
    """Defaults mirror the standard exponential setup."""
    config = SimulationConfig()

    assert config.mortality.mortality_type == "Exponential"
    assert config.mortality.mortality_rate == 0.0
    assert config.mortality.mortality_units == "Days"
    assert config.mortality.mortality_parameters == pytest.approx((1 / 0.0635, 0.7559))


def test_load_config(tmp_path):
    """JSON files map onto the configuration dataclasses."""
    path = tmp_path / "run.json"
    path.write_text(json.dumps({
        "num_particles": 25,
        "release_lon": 152.1,
        "release_lat": -24.0,
        "time_step": 1800,
        "duration": 86400,
        "mortality": {
            "mortality_type": "Weibull",
            "mortality_parameters": [12.0, 0.8],
            "mortality_units": "Days",
            "seed": 4
        }
    }))

    config = load_config(str(path))

    assert config.num_particles == 25
    assert config.release_lon == 152.1
    assert config.mortality.mortality_type == "Weibull"
    assert config.mortality.mortality_parameters == (12.0, 0.8)
    assert config.mortality.seed == 4


def test_unknown_keys_rejected():
    with pytest.raises(InvalidParameterError):
        SimulationConfig.from_dict({"num_particle": 10})
    with pytest.raises(InvalidParameterError):
        SimulationConfig.from_dict({"mortality": {"rate": 1.0}})


@pytest.mark.parametrize("kwargs", [
    {"num_particles": -1},
    {"time_step": 0.0},
    {"duration": -5.0},
    {"workers": 0},
])
def test_invalid_simulation_values(kwargs):
    with pytest.raises(InvalidParameterError):
        SimulationConfig(**kwargs)


def test_invalid_mortality_units():
    with pytest.raises(InvalidParameterError):
        MortalityConfig(mortality_units="lightyears")


def test_to_dict_round_trip():
    config = SimulationConfig(num_particles=7, mortality=MortalityConfig(mortality_rate=0.2))
    assert SimulationConfig.from_dict(config.to_dict()) == config


def test_expected_survival():
    """Expected survival follows the configured hazard."""
    exponential = SimulationConfig(mortality=MortalityConfig(mortality_rate=0.1))
    assert expected_survival(exponential, 10 * 86400.0) == pytest.approx(0.36787944, rel=1e-6)

    weibull = SimulationConfig(mortality=MortalityConfig(
        mortality_type="Weibull", mortality_parameters=(10.0, 1.0)))
    assert expected_survival(weibull, 10 * 86400.0) == pytest.approx(0.36787944, rel=1e-6)


def test_cli_run():
    """A small command-line run completes and reports statistics."""
    stats = main([
        "--particles", "50",
        "--duration", "86400",
        "--time-step", "3600",
        "--mortality-rate", "0.5",
        "--seed", "3",
        "--log-level", "WARNING",
    ])

    assert stats["total_particles"] == 50
    assert stats["simulation_time"] == pytest.approx(86400.0)


def test_cli_config_file(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"num_particles": 5, "duration": 7200, "time_step": 3600}))

    stats = main(["--config", str(path), "--log-level", "WARNING"])

    assert stats["total_particles"] == 5
    assert stats["dead_particles"] == 0


def test_cli_bad_config_exits(tmp_path):
    """Setup failures exit with status 1."""
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"workers": 0}))

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(path), "--log-level", "WARNING"])
    assert excinfo.value.code == 1


def test_cli_malformed_config_exits(tmp_path):
    """A config file that is not valid JSON also exits with status 1."""
    path = tmp_path / "broken.json"
    path.write_text("{\"num_particles\": 5,")

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(path), "--log-level", "WARNING"])
    assert excinfo.value.code == 1
