"""py_atmrefraction exception types.

Exception Hierarchy
-------------------

Exception (built-in Python)
├── ValueError
│   ├── InvalidConfigurationError
│   └── AtmosphereLoadingError
└── RuntimeError
    └── SolverRuntimeError
        ├── DomainError
        ├── IntegrationError
        ├── RangeError
        └── ShootingError

Exception Types
---------------

Configuration-Related Exceptions:

- InvalidConfigurationError: Raised when run parameters conflict or are missing, e.g. both
  a launch angle and a target are requested, or a flat planet is combined with a radius.

- AtmosphereLoadingError: Raised when an atmosphere definition (mapping or file) is malformed.

Solver-Related Exceptions:

- SolverRuntimeError: Base class for all solver-related runtime errors.

- DomainError: The ray left the region where the model is defined, e.g. it passed through
  the centre of a spherical planet, or the refractive index became non-positive.

- IntegrationError: The adaptive integrator could not keep the local error within tolerance
  without reducing the step below its floor (numerical instability), or the ODE solver failed.

- RangeError: A path was queried beyond the point where its integration terminated. Contains:
  - reason: Specific reason for the termination.  Enumerated reasons:
    - MaximumAltitudeReached: Ray escaped above the altitude ceiling
    - MinimumAltitudeReached: Ray fell below the altitude floor
    - MaximumDistanceReached: Ray travelled past the distance limit
  - last_distance: Ground distance of the last computed sample (m)

- ShootingError: The launch angle search failed. Contains:
  - altitude_error: Residual altitude miss (m)
  - iterations_count: Number of iterations performed
  - last_angle: Last launch angle tried (radians)
  - reason: Specific reason for failure.  Enumerated reasons:
    - NOT_BRACKETED: The residual has the same sign at both ends of the angle bracket
    - NON_CONVERGENT: The iteration budget was exhausted
"""
from __future__ import annotations

import math
from typing import Optional

__all__ = (
    'InvalidConfigurationError',
    'AtmosphereLoadingError',
    'SolverRuntimeError',
    'DomainError',
    'IntegrationError',
    'RangeError',
    'ShootingError',
)


class InvalidConfigurationError(ValueError):
    """Conflicting or missing run parameters."""


class AtmosphereLoadingError(ValueError):
    """Malformed atmosphere definition."""


class SolverRuntimeError(RuntimeError):
    """Solver error."""


class DomainError(SolverRuntimeError):
    """Ray state outside the domain of the model."""


class IntegrationError(SolverRuntimeError):
    """Exception for integrator failures.

    Contains:
    - Ground distance (m) where integration gave up
    - Step size (m) at the moment of failure, if known
    """

    def __init__(self, message: str, distance: Optional[float] = None, step: Optional[float] = None):
        self.distance: Optional[float] = distance
        self.step: Optional[float] = step
        if distance is not None:
            message += f" at distance {distance:.6g} m"
        if step is not None:
            message += f" (step {step:.3g} m)"
        super().__init__(message)


class RangeError(SolverRuntimeError):
    """Exception for paths that don't reach the requested distance.

    Contains:
    - The termination reason
    - Last distance computed before integration stopped
    """

    reason: str
    last_distance: Optional[float]

    MaximumAltitudeReached: str = "Maximum altitude reached"
    MinimumAltitudeReached: str = "Minimum altitude reached"
    MaximumDistanceReached: str = "Maximum distance reached"

    def __init__(self, reason: str, last_distance: Optional[float] = None):
        self.reason = reason
        self.last_distance = last_distance
        message = f'{reason}'
        if last_distance is not None:
            message += f' after {last_distance:.6g} m'
        super().__init__(message)


class ShootingError(SolverRuntimeError):
    """Exception for launch angle search issues.

    Contains:
    - Residual altitude miss
    - Iteration count
    - Last launch angle (radians)
    """

    NOT_BRACKETED = "Target not bracketed"
    NON_CONVERGENT = "Angle search non-convergent"

    def __init__(self,
                 altitude_error: float,
                 iterations_count: int,
                 last_angle: float,
                 reason: str = ""):
        """
        Parameters:
        - altitude_error: The altitude miss in metres
        - iterations_count: The number of iterations performed
        - last_angle: The last launch angle tried, in radians
        """
        self.altitude_error: float = altitude_error
        self.iterations_count: int = iterations_count
        self.last_angle: float = last_angle
        self.reason: str = reason
        msg = (f'Altitude error {altitude_error} m '
               f'with {math.degrees(last_angle):.8f} deg launch angle, '
               f'after {iterations_count} iterations.')
        if reason:
            msg = f"{reason}. " + msg
        super().__init__(msg)
