"""Queryable ray paths and the distance root finder.

Classes:
    Path: Protocol of every path: `h_at_dist` and `angle_at_dist`.
    RaySample: One integrator sample, a state together with its derivative.
    RayPath: Refracted ray backed by a lazily consumed stream of integrator samples.
    StraightPath: Unrefracted geometric straight line.

Functions:
    find_dist_for_h: Bisection for the distance at which a path reaches an altitude.

Distances passed to the query methods are ground distances in metres; angles are returned in
radians above the local horizontal, positive when the ray ascends.
"""
from __future__ import annotations

import math
from bisect import bisect_right

from typing_extensions import Generator, List, NamedTuple, Optional, Protocol, Tuple, runtime_checkable

from py_atmrefraction.conditions import RayProps
from py_atmrefraction.constants import cDistanceTolerance, cMaxSearchDistance
from py_atmrefraction.exceptions import RangeError, SolverRuntimeError
from py_atmrefraction.interpolation import hermite_eval_pair
from py_atmrefraction.logger import logger
from py_atmrefraction.state import RayState, RayStateDerivative

__all__ = (
    'Path',
    'RaySample',
    'RaySampleStream',
    'RayPath',
    'StraightPath',
    'find_dist_for_h',
)


@runtime_checkable
class Path(Protocol):
    """Anything that answers altitude and angle queries by ground distance."""

    def h_at_dist(self, dist: float) -> float:
        """Altitude (m) at ground distance `dist` (m)."""
        ...

    def angle_at_dist(self, dist: float) -> float:
        """Ray elevation (radians) at ground distance `dist` (m)."""
        ...


class RaySample(NamedTuple):
    """Integrator sample."""

    state: RayState
    derivative: RayStateDerivative


# Engines yield samples in increasing `x` and return the termination reason (a RangeError reason)
RaySampleStream = Generator[RaySample, None, Optional[str]]


class RayPath:
    """Refracted ray.

    Samples are pulled from the engine's stream only as far as queries require, so a query past
    the last sample continues the integration from there. Between samples the altitude and the
    slope are reconstructed with cubic Hermite polynomials using the exact stored derivatives.

    Attributes:
        props: Launch parameters of the ray.
    """

    def __init__(self, props: RayProps, stream: RaySampleStream):
        self.props: RayProps = props
        self._stream: RaySampleStream = stream
        self._samples: List[RaySample] = []
        self._xs: List[float] = []
        self._termination_reason: Optional[str] = None
        self._error: Optional[SolverRuntimeError] = None
        self._exhausted = False
        self._pull()
        if not self._samples:
            raise RangeError(self._termination_reason or RangeError.MaximumDistanceReached, 0.0)

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(start_h={self.props.start_h}, "
                f"launch_angle={math.degrees(self.props.launch_angle_rad)} deg, samples={len(self._samples)})")

    @property
    def launch_angle(self) -> float:
        """Launch elevation (radians)."""
        return self.props.launch_angle_rad

    @property
    def samples(self) -> Tuple[RaySample, ...]:
        """Samples computed so far."""
        return tuple(self._samples)

    @property
    def termination_reason(self) -> Optional[str]:
        """RangeError reason once the integration has stopped, else None."""
        return self._termination_reason

    def _pull(self) -> bool:
        if self._exhausted:
            return False
        try:
            sample = next(self._stream)
        except StopIteration as stop:
            self._exhausted = True
            self._termination_reason = stop.value or RangeError.MaximumDistanceReached
            return False
        except SolverRuntimeError as e:
            self._exhausted = True
            self._error = e
            raise
        self._samples.append(sample)
        self._xs.append(sample.state.x)
        return True

    def _extend_to(self, x: float) -> None:
        while self._xs[-1] < x and self._pull():
            pass
        # a segment is needed for extrapolation before the first sample
        if len(self._samples) == 1:
            self._pull()

    def _state_at(self, dist: float) -> RayState:
        x = self.props.x_of_dist(dist)
        self._extend_to(x)
        if x > self._xs[-1]:
            if self._error is not None:
                raise self._error
            raise RangeError(self._termination_reason or RangeError.MaximumDistanceReached,
                             self.props.dist_of_x(self._xs[-1]))
        if len(self._samples) == 1:
            return self._samples[0].state
        i = min(max(bisect_right(self._xs, x) - 1, 0), len(self._xs) - 2)
        s0, d0 = self._samples[i]
        s1, d1 = self._samples[i + 1]
        h, dr = hermite_eval_pair(x, s0.x, s1.x, s0.h, s1.h, d0.dr, d1.dr, d0.d2r, d1.d2r)
        return RayState(x, h, dr)

    def h_at_dist(self, dist: float) -> float:
        return self._state_at(dist).h

    def angle_at_dist(self, dist: float) -> float:
        return self.props.angle_of_state(self._state_at(dist))


class StraightPath:
    """Unrefracted ray.

    On a flat planet the altitude grows linearly with distance. On a spherical planet the ray is
    a straight chord expressed in polar coordinates, `r(phi) = r0 cos(a0) / cos(phi + a0)`; once
    `phi + a0` reaches 90 degrees the line never comes back and queries raise RangeError.
    """

    def __init__(self, props: RayProps):
        self.props: RayProps = props

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(start_h={self.props.start_h}, "
                f"launch_angle={math.degrees(self.props.launch_angle_rad)} deg)")

    @property
    def launch_angle(self) -> float:
        return self.props.launch_angle_rad

    def _check_reach(self, phi: float) -> None:
        a0 = self.props.launch_angle_rad
        if abs(phi + a0) >= math.pi / 2:
            assert self.props.radius is not None
            limit = math.copysign(math.pi / 2, phi) - a0
            raise RangeError(RangeError.MaximumAltitudeReached, self.props.dist_of_x(limit))

    def h_at_dist(self, dist: float) -> float:
        a0 = self.props.launch_angle_rad
        radius = self.props.radius
        if radius is None:
            return self.props.start_h + dist * math.tan(a0)
        phi = dist / radius
        self._check_reach(phi)
        return (radius + self.props.start_h) * math.cos(a0) / math.cos(phi + a0) - radius

    def angle_at_dist(self, dist: float) -> float:
        a0 = self.props.launch_angle_rad
        if self.props.radius is None:
            return a0
        phi = dist / self.props.radius
        self._check_reach(phi)
        return a0 + phi


def find_dist_for_h(path: Path, target_h: float,
                    max_dist: float = cMaxSearchDistance,
                    tolerance: float = cDistanceTolerance) -> float:
    """Distance (m) at which `path` crosses altitude `target_h`, by bisection over [0, max_dist].

    The bracket is halved by the sign of `h(mid) - target_h` until narrower than `tolerance`,
    and its midpoint is returned. Altitude is assumed monotonic over the bracket; the result is
    not verified. A path that stopped before `mid` counts as infinitely high if it escaped
    upwards and infinitely low if it fell below its altitude floor.
    """
    min_dist, max_dist_ = 0.0, max_dist
    while max_dist_ - min_dist > tolerance:
        cur_dist = 0.5 * (min_dist + max_dist_)
        try:
            h = path.h_at_dist(cur_dist)
        except RangeError as e:
            h = -math.inf if e.reason == RangeError.MinimumAltitudeReached else math.inf
        if h > target_h:
            max_dist_ = cur_dist
        else:
            min_dist = cur_dist
    result = 0.5 * (min_dist + max_dist_)
    if result <= tolerance or result >= max_dist - tolerance:
        logger.warning(f"find_dist_for_h({target_h}) converged to the bracket edge at {result} m; "
                       f"the path probably doesn't cross that altitude")
    return result
