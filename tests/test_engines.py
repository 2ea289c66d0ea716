import math

import pytest

from py_atmrefraction import (BaseEngineConfigDict, Calculator, DomainError, IntegrationError, RangeError,
                              RK4IntegrationEngine, ShootingError)
from py_atmrefraction.atmosphere import Homogeneous, Vacuum, us76_atmosphere
from py_atmrefraction.conditions import Environment, Flat, Spherical
from py_atmrefraction.engines import Horizon

pytestmark = pytest.mark.engine

RADIUS = 6_378_000.0
US76_SPHERE = Environment(Spherical(RADIUS), us76_atmosphere())
US76_FLAT = Environment(Flat(), us76_atmosphere())


class WigglyAtmosphere(Homogeneous):
    """Pressure oscillating on a sub-millimetre scale."""

    def pressure(self, h: float) -> float:
        return 101325.0 * (1.0 + 1e-2 * math.sin(1e4 * h))


@pytest.fixture
def calc(loaded_engine_instance):
    return Calculator(engine=loaded_engine_instance)


class TestFreeRay:

    def test_flat_uniform_index_is_straight(self, calc):
        env = Environment(Flat(), Homogeneous())
        angle = math.radians(1.0)
        path = calc.cast_ray(env, 1.0, angle)
        for dist in (100.0, 1000.0, 10_000.0):
            assert path.h_at_dist(dist) == pytest.approx(1.0 + dist * math.tan(angle), abs=1e-6)
            assert path.angle_at_dist(dist) == pytest.approx(angle, abs=1e-12)

    def test_flat_horizontal_ray_keeps_altitude(self, calc):
        path = calc.cast_ray(Environment(Flat(), Homogeneous()), 100.0, 0.0)
        assert path.h_at_dist(10_000.0) == pytest.approx(100.0, abs=1e-9)

    def test_spherical_vacuum_matches_chord(self, calc):
        env = Environment(Spherical(RADIUS), Vacuum())
        straight = calc.cast_ray(env, 1.0, math.radians(0.5), straight=True)
        refracted = calc.cast_ray(env, 1.0, math.radians(0.5))
        for dist in (1000.0, 25_000.0, 100_000.0):
            assert refracted.h_at_dist(dist) == pytest.approx(straight.h_at_dist(dist), abs=1e-4)
            assert refracted.angle_at_dist(dist) == pytest.approx(straight.angle_at_dist(dist), abs=1e-9)

    def test_refraction_bends_ray_down(self, calc):
        straight = calc.cast_ray(US76_SPHERE, 1.0, 0.0, straight=True)
        refracted = calc.cast_ray(US76_SPHERE, 1.0, 0.0)
        assert 1.0 < refracted.h_at_dist(10_000.0) < straight.h_at_dist(10_000.0)

    @pytest.mark.parametrize("env", [US76_SPHERE, US76_FLAT], ids=["spherical", "flat"])
    def test_altitude_increases_with_launch_angle(self, calc, env):
        angles = [math.radians(a) for a in (-0.2, -0.05, 0.0, 0.05, 0.3, 2.0)]
        paths = [calc.cast_ray(env, 10.0, a) for a in angles]
        for dist in (500.0, 5000.0, 20_000.0):
            heights = [path.h_at_dist(dist) for path in paths]
            assert all(a < b for a, b in zip(heights, heights[1:]))

    def test_queries_are_idempotent(self, calc):
        path = calc.cast_ray(US76_SPHERE, 1.0, math.radians(0.1))
        first = path.h_at_dist(12_345.0)
        path.h_at_dist(80_000.0)
        assert path.h_at_dist(12_345.0) == first

    def test_maximum_altitude_termination(self, loaded_engine_instance):
        calc = Calculator(config=BaseEngineConfigDict(cMaximumAltitude=1000.0), engine=loaded_engine_instance)
        path = calc.cast_ray(Environment(Flat(), Vacuum()), 0.0, math.radians(45.0))
        assert path.h_at_dist(500.0) == pytest.approx(500.0, abs=1e-6)
        with pytest.raises(RangeError) as exc_info:
            path.h_at_dist(5000.0)
        assert exc_info.value.reason == RangeError.MaximumAltitudeReached
        assert path.termination_reason == RangeError.MaximumAltitudeReached

    def test_minimum_altitude_termination(self, loaded_engine_instance):
        calc = Calculator(config=BaseEngineConfigDict(cMinimumAltitude=-100.0), engine=loaded_engine_instance)
        path = calc.cast_ray(Environment(Flat(), Vacuum()), 0.0, math.radians(-45.0))
        with pytest.raises(RangeError) as exc_info:
            path.h_at_dist(1000.0)
        assert exc_info.value.reason == RangeError.MinimumAltitudeReached

    def test_maximum_distance_termination(self, loaded_engine_instance):
        calc = Calculator(config=BaseEngineConfigDict(cMaximumDistance=2000.0), engine=loaded_engine_instance)
        path = calc.cast_ray(US76_FLAT, 1.0, 0.0)
        with pytest.raises(RangeError) as exc_info:
            path.h_at_dist(50_000.0)
        assert exc_info.value.reason == RangeError.MaximumDistanceReached

    def test_invalid_launch_angle(self, calc):
        with pytest.raises(ValueError):
            calc.cast_ray(US76_SPHERE, 1.0, math.pi / 2)
        with pytest.raises(ValueError):
            calc.cast_ray(US76_SPHERE, 1.0, math.nan)

    def test_start_below_planet_centre(self, calc):
        with pytest.raises(DomainError):
            calc.cast_ray(US76_SPHERE, -2 * RADIUS, 0.0)

    def test_step_counters(self, loaded_engine_instance):
        engine = loaded_engine_instance({})
        path = engine.cast_ray(US76_SPHERE, 1.0, 0.0)
        path.h_at_dist(50_000.0)
        assert engine.trajectory_count == 1
        assert engine.integration_step_count > 0


class TestTargetRay:

    @pytest.mark.parametrize("env", [US76_SPHERE, US76_FLAT], ids=["spherical", "flat"])
    @pytest.mark.parametrize("target_h, target_dist", [(100.0, 20_000.0), (0.0, 30_000.0), (5000.0, 50_000.0)])
    def test_round_trip(self, calc, env, target_h, target_dist):
        path = calc.cast_ray_target(env, 1.0, target_h, target_dist)
        assert path.h_at_dist(target_dist) == pytest.approx(target_h, abs=1e-5)

    @pytest.mark.parametrize("env", [US76_SPHERE, US76_FLAT], ids=["spherical", "flat"])
    def test_straight_target(self, calc, env):
        path = calc.cast_ray_target(env, 2.0, 300.0, 40_000.0, straight=True)
        assert path.h_at_dist(40_000.0) == pytest.approx(300.0, abs=1e-6)

    def test_refracted_launch_angle_is_higher(self, calc):
        straight = calc.cast_ray_target(US76_SPHERE, 1.0, 0.0, 30_000.0, straight=True)
        refracted = calc.cast_ray_target(US76_SPHERE, 1.0, 0.0, 30_000.0)
        assert refracted.angle_at_dist(0.0) > straight.angle_at_dist(0.0)

    def test_non_positive_target_distance(self, calc):
        with pytest.raises(ValueError):
            calc.cast_ray_target(US76_SPHERE, 1.0, 0.0, 0.0)
        with pytest.raises(ValueError):
            calc.cast_ray_target(US76_SPHERE, 1.0, 0.0, -5.0, straight=True)

    def test_not_bracketed(self, loaded_engine_instance):
        calc = Calculator(config=BaseEngineConfigDict(cShootingBracket=1e-4), engine=loaded_engine_instance)
        with pytest.raises(ShootingError) as exc_info:
            calc.cast_ray_target(US76_SPHERE, 1.0, 0.0, 30_000.0)
        assert exc_info.value.reason.startswith(ShootingError.NOT_BRACKETED)
        assert exc_info.value.iterations_count == 0

    def test_non_convergent(self, loaded_engine_instance):
        config = BaseEngineConfigDict(cMaxIterations=1, cAltitudeTolerance=1e-12)
        calc = Calculator(config=config, engine=loaded_engine_instance)
        with pytest.raises(ShootingError) as exc_info:
            calc.cast_ray_target(US76_SPHERE, 1.0, 0.0, 30_000.0)
        assert exc_info.value.reason == ShootingError.NON_CONVERGENT
        assert exc_info.value.iterations_count == 1


class TestHorizon:

    def test_us76_horizon_is_beyond_geometric(self, calc):
        horizon = calc.horizon(US76_SPHERE, 1.0)
        assert isinstance(horizon, Horizon)
        geometric = math.sqrt(2 * RADIUS * 1.0)
        assert geometric < horizon.distance < 5000.0
        assert math.radians(-0.04) < horizon.angle < math.radians(-0.02)

    def test_straight_horizon(self, calc):
        horizon = calc.horizon(US76_SPHERE, 1.0, straight=True)
        assert horizon.distance == pytest.approx(RADIUS * math.acos(RADIUS / (RADIUS + 1.0)), abs=1e-3)
        assert horizon.angle == pytest.approx(-horizon.distance / RADIUS)

    def test_find_dist_for_h_is_idempotent(self, calc):
        path = calc.cast_ray(US76_SPHERE, 0.0, 0.0)
        first = calc.find_dist_for_h(path, 10.0)
        second = calc.find_dist_for_h(path, 10.0)
        assert second == pytest.approx(first, abs=1e-5)
        assert path.h_at_dist(first) == pytest.approx(10.0, abs=1e-6)


class TestAstronomicalRefraction:

    def test_at_45_degrees(self, calc):
        deflection = math.degrees(calc.astronomical_refraction(US76_SPHERE, 1.0, math.radians(45.0)))
        assert 0.015 < deflection < 0.0175

    @pytest.mark.extended
    def test_at_horizon(self, calc):
        deflection = math.degrees(calc.astronomical_refraction(US76_SPHERE, 1.0, 0.0))
        assert 0.45 < deflection < 0.65

    def test_vacuum_has_none(self, calc):
        env = Environment(Spherical(RADIUS), Vacuum())
        assert calc.astronomical_refraction(env, 1.0, math.radians(10.0)) == pytest.approx(0.0, abs=1e-8)

    def test_straight_has_none(self, calc):
        assert calc.astronomical_refraction(US76_SPHERE, 1.0, math.radians(10.0), straight=True) == \
               pytest.approx(0.0, abs=1e-10)

    def test_flat_planet(self, calc):
        deflection = math.degrees(calc.astronomical_refraction(US76_FLAT, 1.0, math.radians(45.0)))
        assert 0.015 < deflection < 0.0175


class TestRK4StepControl:

    def test_unstable_atmosphere_raises_integration_error(self):
        engine = RK4IntegrationEngine(BaseEngineConfigDict(cMinimumStep=1.0))
        path = engine.cast_ray(Environment(Flat(), WigglyAtmosphere()), 0.0, 0.0)
        with pytest.raises(IntegrationError) as exc_info:
            path.h_at_dist(1000.0)
        assert exc_info.value.step is not None and exc_info.value.step < 1.0
        assert engine.rejected_step_count > 0

    def test_step_never_exceeds_maximum(self):
        engine = RK4IntegrationEngine(BaseEngineConfigDict(cMaximumStep=100.0))
        path = engine.cast_ray(Environment(Flat(), Vacuum()), 0.0, 0.0)
        path.h_at_dist(1000.0)
        xs = [sample.state.x for sample in path.samples]
        assert max(b - a for a, b in zip(xs, xs[1:])) <= 100.0 + 1e-9

    def test_spherical_step_limits_are_ground_distance(self):
        engine = RK4IntegrationEngine(BaseEngineConfigDict(cMaximumStep=1000.0))
        path = engine.cast_ray(US76_SPHERE, 1.0, 0.0)
        path.h_at_dist(20_000.0)
        xs = [sample.state.x * RADIUS for sample in path.samples]
        assert max(b - a for a, b in zip(xs, xs[1:])) <= 1000.0 + 1e-6
