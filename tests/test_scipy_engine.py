import math

import pytest

pytest.importorskip("scipy")

from py_atmrefraction import Calculator, RK4IntegrationEngine
from py_atmrefraction.atmosphere import Vacuum, us76_atmosphere
from py_atmrefraction.conditions import Environment, Flat, Spherical
from py_atmrefraction.engines import SciPyEngineConfigDict, SciPyIntegrationEngine, create_scipy_engine_config

pytestmark = pytest.mark.extended

US76_SPHERE = Environment(Spherical(), us76_atmosphere())


def test_config_defaults_and_overrides():
    assert create_scipy_engine_config().integration_method == 'RK45'
    config = create_scipy_engine_config(SciPyEngineConfigDict(integration_method='DOP853', cMaximumStep=100.0))
    assert config.integration_method == 'DOP853'
    assert config.cMaximumStep == 100.0


def test_unsupported_method():
    with pytest.raises(ValueError):
        SciPyIntegrationEngine(SciPyEngineConfigDict(integration_method='Euler'))  # type: ignore[typeddict-item]


def test_loaded_by_entry_point_name():
    calc = Calculator(engine='scipy_engine')
    assert isinstance(calc._engine_instance, SciPyIntegrationEngine)


@pytest.mark.parametrize("method", ["RK23", "DOP853", "Radau", "BDF", "LSODA"])
def test_integration_method_through_calculator(method):
    config = SciPyEngineConfigDict(integration_method=method, cMaximumStep=500.0)
    calc = Calculator(config=config, engine='scipy_engine')
    engine = calc._engine_instance
    assert engine._config.integration_method == method
    assert engine._config.cMaximumStep == 500.0
    assert engine.trajectory_count == engine.integration_step_count == engine.eval_count == 0


@pytest.mark.parametrize("method", ["RK45", "DOP853", "LSODA"])
def test_agrees_with_rk4(method):
    scipy_engine = SciPyIntegrationEngine(SciPyEngineConfigDict(integration_method=method))
    rk4_engine = RK4IntegrationEngine({})
    angle = math.radians(0.2)
    scipy_path = scipy_engine.cast_ray(US76_SPHERE, 10.0, angle)
    rk4_path = rk4_engine.cast_ray(US76_SPHERE, 10.0, angle)
    for dist in (1000.0, 20_000.0, 100_000.0):
        assert scipy_path.h_at_dist(dist) == pytest.approx(rk4_path.h_at_dist(dist), abs=1e-4)
    assert scipy_engine.eval_count > 0
    assert scipy_engine.integration_step_count > 0


def test_flat_vacuum_straight_line():
    engine = SciPyIntegrationEngine({})
    angle = math.radians(3.0)
    path = engine.cast_ray(Environment(Flat(), Vacuum()), 5.0, angle)
    assert path.h_at_dist(10_000.0) == pytest.approx(5.0 + 10_000.0 * math.tan(angle), abs=1e-6)


def test_round_trip_target():
    calc = Calculator(engine=SciPyIntegrationEngine)
    path = calc.cast_ray_target(US76_SPHERE, 1.0, 50.0, 25_000.0)
    assert path.h_at_dist(25_000.0) == pytest.approx(50.0, abs=1e-5)
