import math

import pytest

from py_atmrefraction.__main__ import main

pytestmark = pytest.mark.extended


def _lines(capsys):
    return [line for line in capsys.readouterr().out.splitlines() if line]


def test_altitude_at_distance(capsys):
    assert main(["-H", "1", "-a", "0", "-o", "10"]) == 0
    (line,) = _lines(capsys)
    assert 1.0 < float(line) < 1.0 + 10_000.0 ** 2 / (2 * 6_378_000.0)


def test_flat_straight_scenario(capsys):
    assert main(["-f", "-s", "-H", "100", "-a", "0", "-o", "10"]) == 0
    assert _lines(capsys) == ["100.0"]


def test_negative_start_angle(capsys):
    assert main(["-H", "100", "-a", "-0.5", "--output-ang"]) == 0
    (line,) = _lines(capsys)
    assert float(line) == pytest.approx(-0.5)


def test_target_launch_angle(capsys):
    assert main(["-H", "2", "-t", "0", "-d", "30", "--output-ang", "-o", "30"]) == 0
    altitude, angle = _lines(capsys)
    straight = math.degrees(math.atan2(6_378_000.0 * math.cos(30_000.0 / 6_378_000.0) - 6_378_002.0,
                                       6_378_000.0 * math.sin(30_000.0 / 6_378_000.0)))
    assert float(angle) > straight
    assert float(altitude) == pytest.approx(0.0, abs=1e-5)


def test_horizon_outputs(capsys):
    assert main(["-H", "1", "--output-horizon", "--output-horizon-dist"]) == 0
    angle, distance = _lines(capsys)
    assert -0.04 < float(angle) < -0.02
    assert 3.57 < float(distance) < 5.0


def test_horizon_replaces_other_outputs(capsys):
    assert main(["-H", "1", "-a", "1", "-o", "10", "--output-horizon-dist"]) == 0
    assert len(_lines(capsys)) == 1


def test_astronomical(capsys):
    assert main(["-a", "45", "--output-astronomical"]) == 0
    (line,) = _lines(capsys)
    assert 0.015 < float(line) < 0.0175


def test_verbose(capsys):
    assert main(["-v", "-R", "6371", "-s", "--output-horizon"]) == 0
    out = capsys.readouterr().out
    assert "Ray parameters chosen:" in out
    assert "Earth: spherical with radius 6371.0 km" in out
    assert "Straight-line calculation chosen." in out
    assert "Angle to the horizon:" in out


def test_verbose_flat(capsys):
    assert main(["-v", "-f", "-a", "0", "-o", "1"]) == 0
    out = capsys.readouterr().out
    assert "Earth: flat" in out
    assert "Altitude at distance 1.0 km:" in out


@pytest.mark.parametrize("argv", [
    [],
    ["-o", "10"],
    ["-a", "1", "-t", "5", "-d", "10"],
    ["-t", "5"],
    ["-a", "1", "-d", "10"],
    ["-f", "-R", "6000", "-a", "0"],
    ["-R", "-5", "-a", "0"],
    ["-a", "90", "-o", "1"],
    ["-t", "0", "-d", "0", "-o", "1"],
    ["-e", "no_such_engine", "-a", "0"],
])
def test_configuration_errors(argv, capsys):
    assert main(argv) == 2
    assert _lines(capsys) == []


def test_atmosphere_file(tmp_path, capsys):
    atmosphere = tmp_path / "isothermal.yaml"
    atmosphere.write_text("layers:\n  - altitude: 0.0\n    temperature: 250.0\n    lapse_rate: 0.0\n")
    assert main(["--atmosphere", str(atmosphere), "-a", "0", "-o", "10"]) == 0
    assert len(_lines(capsys)) == 1


def test_bad_atmosphere_file(tmp_path, capsys):
    atmosphere = tmp_path / "broken.yaml"
    atmosphere.write_text("layers: []\n")
    assert main(["--atmosphere", str(atmosphere), "-a", "0", "-o", "10"]) == 1


def test_solver_error(capsys):
    # the path terminates long before 20000 km
    assert main(["-a", "10", "-o", "20000"]) == 1


def test_config_file(tmp_path, capsys, reset_calculator_defaults):
    config = tmp_path / ".pyrefr.toml"
    config.write_text('[pyrefr]\nengine = "rk4_engine"\n\n[pyrefr.engine_config]\ncShootingBracket = 1e-4\n')
    assert main(["-c", str(config), "-t", "0", "-d", "30", "--output-ang"]) == 1


def test_missing_config_file(tmp_path, capsys):
    assert main(["-c", str(tmp_path / "missing.toml"), "-a", "0"]) == 2


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0
    assert "pyrefr v" in capsys.readouterr().out
