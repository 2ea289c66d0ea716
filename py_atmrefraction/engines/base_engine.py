"""Base integration engine for ray tracing through a refracting atmosphere.

The module serves as the core framework for the engine system, providing:
- Engine configuration management through BaseEngineConfig and BaseEngineConfigDict
- Abstract base class BaseIntegrationEngine implementing the EngineProtocol
- The inverse problems every engine shares: the launch angle that hits a target (shooting),
  the horizon, and astronomical refraction

Classes:
    BaseEngineConfig: Dataclass configuration for engine parameters
    BaseEngineConfigDict: TypedDict version for flexible configuration
    BaseIntegrationEngine: Abstract base class for integration engines
    Horizon: Distance and angle to the apparent horizon

Configuration Constants:
    cAbsoluteTolerance: Absolute local error allowed per integration step (m)
    cRelativeTolerance: Local error allowed per step relative to the state magnitude
    cMaxIterations: Maximum iterations of the launch angle search
    cAltitudeTolerance: Altitude miss (m) at which the launch angle search stops

Architecture:
    This module follows the strategy pattern: BaseIntegrationEngine provides the common
    interface and the search algorithms, while concrete subclasses implement `_integrate`,
    a generator of ray samples consumed lazily by RayPath.

See Also:
    py_atmrefraction.generics.engine.EngineProtocol: Protocol interface
    py_atmrefraction.engines: Concrete engine implementations
    py_atmrefraction.paths: Path types and the distance root finder
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass

from typing_extensions import NamedTuple, Optional, TypedDict, TypeVar

from py_atmrefraction.conditions import Environment, RayProps
from py_atmrefraction.constants import cAstronomicalAltitude
from py_atmrefraction.exceptions import RangeError, ShootingError
from py_atmrefraction.generics.engine import EngineProtocol
from py_atmrefraction.logger import logger
from py_atmrefraction.paths import Path, RayPath, RaySampleStream, StraightPath, find_dist_for_h
from py_atmrefraction.state import RayState

__all__ = (
    'create_base_engine_config',
    'BaseEngineConfig',
    'BaseEngineConfigDict',
    'DEFAULT_BASE_ENGINE_CONFIG',
    'BaseIntegrationEngine',
    'Horizon',
)

cAbsoluteTolerance: float = 1e-8  # metres of local error per step
cRelativeTolerance: float = 1e-10  # local error per step relative to |state|
cInitialStep: float = 10.0  # metres of ground distance
cMaximumStep: float = 5000.0  # metres of ground distance
cMinimumStep: float = 1e-6  # metres of ground distance; smaller steps mean numerical instability
cMaximumAltitude: float = 1e7  # metres; ascending rays stop above this
cMinimumAltitude: float = -1e5  # metres; descending rays stop below this
cMaximumDistance: float = 1e7  # metres of ground distance
cMaxIterations: int = 60  # maximum number of iterations for the launch angle search
cAltitudeTolerance: float = 1e-6  # metres of target miss that end the launch angle search
cAngleTolerance: float = 1e-13  # radians; bracket width that ends the launch angle search
cShootingBracket: float = 5.0  # degrees either side of the straight-line angle
cMaximumLaunchAngle: float = 89.0  # degrees


@dataclass
class BaseEngineConfig:
    """Configuration dataclass for ray tracing engines.

    All lengths are metres of ground distance or altitude, angles are degrees.

    Attributes:
        cAbsoluteTolerance: Absolute local error allowed per integration step.
        cRelativeTolerance: Local error allowed per step relative to the magnitude of the state.
        cInitialStep: First integration step.
        cMaximumStep: Largest integration step.
        cMinimumStep: Smallest integration step; needing a smaller one raises IntegrationError.
        cMaximumAltitude: Ascending rays stop above this altitude.
        cMinimumAltitude: Descending rays stop below this altitude.
        cMaximumDistance: Rays stop beyond this ground distance.
        cMaxIterations: Maximum iterations of the launch angle search.
        cAltitudeTolerance: Target miss at which the launch angle search stops.
        cAngleTolerance: Width (radians) of the angle bracket at which the search stops.
        cShootingBracket: Half-width of the launch angle bracket around the straight-line angle.
        cMaximumLaunchAngle: Launch angles are searched within +/- this value.

    Examples:
        >>> config = BaseEngineConfig(cMaximumStep=1000.0)
    """

    cAbsoluteTolerance: float = cAbsoluteTolerance
    cRelativeTolerance: float = cRelativeTolerance
    cInitialStep: float = cInitialStep
    cMaximumStep: float = cMaximumStep
    cMinimumStep: float = cMinimumStep
    cMaximumAltitude: float = cMaximumAltitude
    cMinimumAltitude: float = cMinimumAltitude
    cMaximumDistance: float = cMaximumDistance
    cMaxIterations: int = cMaxIterations
    cAltitudeTolerance: float = cAltitudeTolerance
    cAngleTolerance: float = cAngleTolerance
    cShootingBracket: float = cShootingBracket
    cMaximumLaunchAngle: float = cMaximumLaunchAngle


#: Default configuration instance
DEFAULT_BASE_ENGINE_CONFIG: BaseEngineConfig = BaseEngineConfig()


class BaseEngineConfigDict(TypedDict, total=False):
    """TypedDict for flexible engine configuration from dictionaries.

    All fields are optional; unspecified fields take their values from
    DEFAULT_BASE_ENGINE_CONFIG when passed through create_base_engine_config().

    Examples:
        >>> config_dict: BaseEngineConfigDict = {'cMaximumStep': 1000.0}
        >>> config = create_base_engine_config(config_dict)
        >>> from py_atmrefraction import Calculator
        >>> calc = Calculator(config=config_dict)
    """

    cAbsoluteTolerance: Optional[float]
    cRelativeTolerance: Optional[float]
    cInitialStep: Optional[float]
    cMaximumStep: Optional[float]
    cMinimumStep: Optional[float]
    cMaximumAltitude: Optional[float]
    cMinimumAltitude: Optional[float]
    cMaximumDistance: Optional[float]
    cMaxIterations: Optional[int]
    cAltitudeTolerance: Optional[float]
    cAngleTolerance: Optional[float]
    cShootingBracket: Optional[float]
    cMaximumLaunchAngle: Optional[float]


def create_base_engine_config(interface_config: Optional[BaseEngineConfigDict] = None) -> BaseEngineConfig:
    """Create BaseEngineConfig from optional dictionary configuration.

    Args:
        interface_config: Optional dictionary of overrides. Only specified fields override defaults.

    Returns:
        BaseEngineConfig instance with merged configuration values.

    Raises:
        TypeError: If interface_config holds unknown fields.
    """
    config = asdict(DEFAULT_BASE_ENGINE_CONFIG)
    if interface_config is not None and isinstance(interface_config, dict):
        config.update(interface_config)
    return BaseEngineConfig(**config)


class Horizon(NamedTuple):
    """Apparent horizon seen from an altitude.

    Attributes:
        distance: Ground distance (m) to the point where the grazing ray touches the surface.
        angle: Elevation (radians) of the horizon as seen by the observer, negative below horizontal.
    """

    distance: float
    angle: float


_BaseEngineConfigDictT = TypeVar("_BaseEngineConfigDictT", bound='BaseEngineConfigDict', covariant=True)


class BaseIntegrationEngine(ABC, EngineProtocol[_BaseEngineConfigDictT]):
    """All calculations are done in metres and radians."""

    def __init__(self, _config: _BaseEngineConfigDictT):
        """Initialize the class.

        Args:
            _config: The configuration object.
        """
        self._config: BaseEngineConfig = create_base_engine_config(_config)
        self.integration_step_count: int = 0  # Accepted integration steps over the engine's lifetime
        self.trajectory_count: int = 0  # Number of rays integrated

    def _init_ray(self, env: Environment, start_h: float, angle_rad: float) -> RayProps:
        return RayProps(env, start_h, angle_rad)

    def _termination_reason(self, props: RayProps, state: RayState) -> Optional[str]:
        """RangeError reason if integration must stop at `state`, else None."""
        if state.h > self._config.cMaximumAltitude and state.dr > 0:
            return RangeError.MaximumAltitudeReached
        if state.h < self._config.cMinimumAltitude and state.dr < 0:
            return RangeError.MinimumAltitudeReached
        if props.dist_of_x(state.x) > self._config.cMaximumDistance:
            return RangeError.MaximumDistanceReached
        return None

    def cast_ray(self, env: Environment, start_h: float, angle_rad: float, straight: bool = False) -> Path:
        """Path of a ray launched from `start_h` (m) at `angle_rad` above the horizontal.

        Args:
            env: Planet shape, atmosphere and wavelength.
            start_h: Starting altitude (m).
            angle_rad: Launch elevation (radians).
            straight: If True, ignore refraction and return a geometric straight line.

        Returns:
            StraightPath if `straight` else a lazily integrated RayPath.
        """
        props = self._init_ray(env, start_h, angle_rad)
        if straight:
            return StraightPath(props)
        self.trajectory_count += 1
        return RayPath(props, self._integrate(props))

    def cast_ray_target(self, env: Environment, start_h: float, target_h: float, target_dist: float,
                        straight: bool = False) -> Path:
        """Path of the ray from `start_h` that passes through altitude `target_h` at `target_dist`.

        Raises:
            ValueError: If `target_dist` is not positive.
            ShootingError: If no launch angle within the search bracket hits the target.
        """
        if straight:
            return self.cast_ray(env, start_h, self._straight_angle(env, start_h, target_h, target_dist), True)
        angle = self.find_launch_angle(env, start_h, target_h, target_dist)
        return self.cast_ray(env, start_h, angle)

    @staticmethod
    def _straight_angle(env: Environment, start_h: float, target_h: float, target_dist: float) -> float:
        """Launch angle of the straight line through the target."""
        if not target_dist > 0:
            raise ValueError(f"Target distance must be positive, got {target_dist}")
        radius = env.radius
        if radius is None:
            return math.atan((target_h - start_h) / target_dist)
        phi = target_dist / radius
        r0, rt = radius + start_h, radius + target_h
        return math.atan((rt * math.cos(phi) - r0) / (rt * math.sin(phi)))

    def find_launch_angle(self, env: Environment, start_h: float, target_h: float, target_dist: float) -> float:
        """Launch angle (radians) of the refracted ray hitting `target_h` at `target_dist`.

        The search uses Ridder's method over a bracket of +/- cShootingBracket degrees around the
        straight-line angle, clipped to +/- cMaximumLaunchAngle. The bracket is never widened.

        Raises:
            ValueError: If `target_dist` is not positive.
            ShootingError: If the bracket holds no root, or the search does not converge.
        """
        straight_angle = self._straight_angle(env, start_h, target_h, target_dist)
        limit = math.radians(self._config.cMaximumLaunchAngle)
        half_width = math.radians(self._config.cShootingBracket)
        low_angle = max(straight_angle - half_width, -limit)
        high_angle = min(straight_angle + half_width, limit)

        def error_at_distance(angle_rad: float) -> float:
            """Target miss (m) for given launch angle."""
            path = self.cast_ray(env, start_h, angle_rad)
            try:
                return path.h_at_dist(target_dist) - target_h
            except RangeError as e:
                # Rays stopping early keep the sign of where they went
                if e.reason == RangeError.MinimumAltitudeReached:
                    return self._config.cMinimumAltitude - target_h
                return self._config.cMaximumAltitude - target_h

        f_low = error_at_distance(low_angle)
        f_high = error_at_distance(high_angle)
        if f_low == 0.0:
            return low_angle
        if f_high == 0.0:
            return high_angle
        if f_low * f_high > 0:
            reason = (f"{ShootingError.NOT_BRACKETED} in elevation range "
                      f"({math.degrees(low_angle):.4f}, {math.degrees(high_angle):.4f} deg). "
                      f"Errors at bracket: f(low)={f_low:.4g}, f(high)={f_high:.4g}")
            raise ShootingError(min(abs(f_low), abs(f_high)), 0, straight_angle, reason=reason)

        # Ridder's method: each iteration fits an exponential through the bracket ends and midpoint
        tolerance = self._config.cAltitudeTolerance
        iterations = 0
        for iterations in range(1, self._config.cMaxIterations + 1):
            mid_angle = (low_angle + high_angle) / 2.0
            f_mid = error_at_distance(mid_angle)
            if abs(f_mid) <= tolerance:
                logger.debug(f"Launch angle found after {iterations} iterations")
                return mid_angle

            s = math.sqrt(f_mid ** 2.0 - f_low * f_high)
            if s == 0.0:
                break

            next_angle = mid_angle + (mid_angle - low_angle) * (math.copysign(1, f_low - f_high) * f_mid / s)
            f_next = error_at_distance(next_angle)
            if abs(f_next) <= tolerance:
                logger.debug(f"Launch angle found after {iterations} iterations")
                return next_angle

            if f_mid * f_next < 0:
                low_angle, f_low = mid_angle, f_mid
                high_angle, f_high = next_angle, f_next
            elif f_low * f_next < 0:
                high_angle, f_high = next_angle, f_next
            elif f_high * f_next < 0:
                low_angle, f_low = next_angle, f_next
            else:
                break  # root no longer bracketed

            if low_angle > high_angle:
                low_angle, high_angle, f_low, f_high = high_angle, low_angle, f_high, f_low
            if high_angle - low_angle < self._config.cAngleTolerance:
                result = (low_angle + high_angle) / 2
                logger.debug(f"Launch angle bracket collapsed after {iterations} iterations")
                return result

        raise ShootingError(min(abs(f_low), abs(f_high)), iterations, (low_angle + high_angle) / 2,
                            reason=ShootingError.NON_CONVERGENT)

    @staticmethod
    def find_dist_for_h(path: Path, target_h: float) -> float:
        """Distance (m) at which `path` reaches `target_h`; see py_atmrefraction.paths.find_dist_for_h."""
        return find_dist_for_h(path, target_h)

    def horizon(self, env: Environment, start_h: float, straight: bool = False) -> Horizon:
        """Distance and angle to the horizon seen from `start_h`.

        The ray grazing the surface (altitude 0, angle 0) is traced until it climbs back to
        the observer's altitude; the horizon angle is the reverse of its elevation there.
        """
        path = self.cast_ray(env, 0.0, 0.0, straight)
        distance = find_dist_for_h(path, start_h)
        return Horizon(distance, -path.angle_at_dist(distance))

    def astronomical_refraction(self, env: Environment, start_h: float, angle_rad: float,
                                straight: bool = False) -> float:
        """Deflection (radians) of light from a celestial object seen at elevation `angle_rad`.

        The ray is traced up to the top of the atmosphere; the deflection is the launch angle
        minus the local elevation there, corrected by the central angle on a spherical planet.
        """
        path = self.cast_ray(env, start_h, angle_rad, straight)
        return self._deflection(env, path, angle_rad)

    @staticmethod
    def _deflection(env: Environment, path: Path, angle_rad: float) -> float:
        distance = find_dist_for_h(path, cAstronomicalAltitude)
        deflection = angle_rad - path.angle_at_dist(distance)
        if env.radius is not None:
            deflection += distance / env.radius
        return deflection

    @abstractmethod
    def _integrate(self, props: RayProps) -> RaySampleStream:
        """Generate samples of the ray described by `props`.

        Yields RaySample instances in increasing `x`, starting with the initial state, and
        returns the RangeError reason once the ray meets a termination condition.

        Raises:
            DomainError: If the ray passes through the centre of a spherical planet.
            IntegrationError: If the integration cannot proceed within its step limits.
        """
        ...
