import math

import pytest

from py_atmrefraction.exceptions import (AtmosphereLoadingError, DomainError, IntegrationError,
                                         InvalidConfigurationError, RangeError, ShootingError, SolverRuntimeError)

pytestmark = pytest.mark.extended


def test_hierarchy():
    for exc_type in (DomainError, IntegrationError, RangeError, ShootingError):
        assert issubclass(exc_type, SolverRuntimeError)
        assert issubclass(exc_type, RuntimeError)
    assert issubclass(InvalidConfigurationError, ValueError)
    assert issubclass(AtmosphereLoadingError, ValueError)


def test_shooting_error_message_and_attrs():
    err = ShootingError(0.5, 7, math.radians(1.2))
    assert "after 7 iterations" in str(err)
    assert "1.20000000 deg" in str(err)
    assert err.iterations_count == 7
    assert err.altitude_error == 0.5
    assert err.reason == ""

    err2 = ShootingError(0.1, 2, 0.0, reason=ShootingError.NON_CONVERGENT)
    assert str(err2).startswith(ShootingError.NON_CONVERGENT)


def test_range_error_last_distance_set_and_none():
    err_empty = RangeError(RangeError.MinimumAltitudeReached)
    assert err_empty.last_distance is None
    assert str(err_empty) == RangeError.MinimumAltitudeReached

    err_with = RangeError(RangeError.MaximumAltitudeReached, 1234.5)
    assert err_with.last_distance == 1234.5
    assert RangeError.MaximumAltitudeReached in str(err_with)
    assert "1234.5 m" in str(err_with)


def test_integration_error_message_variants():
    assert str(IntegrationError("Solver failed")) == "Solver failed"
    err = IntegrationError("Numerical instability", distance=1500.0, step=0.25)
    assert err.distance == 1500.0
    assert err.step == 0.25
    assert "at distance 1500 m" in str(err)
    assert "(step 0.25 m)" in str(err)
