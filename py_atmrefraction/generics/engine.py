"""Engine protocol module for py_atmrefraction.

This module defines the EngineProtocol type protocol that all ray tracing engines
must implement, so that the Calculator interface can use engines interchangeably.

Classes:
    EngineProtocol: Type protocol for ray tracing engines

Type Variables:
    ConfigT: Configuration type for the engine (covariant)
"""
# Standard library imports
from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional, TypeVar

# Third-party imports
from typing_extensions import Protocol, runtime_checkable

if TYPE_CHECKING:
    from py_atmrefraction.conditions import Environment
    from py_atmrefraction.paths import Path

__all__ = ['EngineProtocol', 'ConfigT']

# Type variable for engine configuration
ConfigT = TypeVar("ConfigT", covariant=True)


@runtime_checkable
class EngineProtocol(Protocol[ConfigT]):
    """Protocol defining the interface for ray tracing engines.

    Type Parameters:
        ConfigT: The configuration type used by this engine implementation.

    Required Methods:
        - cast_ray: Trace a ray from a launch angle.
        - cast_ray_target: Trace the ray that passes through a target point.
        - find_dist_for_h: Distance at which a path reaches an altitude.
        - horizon: Distance and angle to the apparent horizon.
        - astronomical_refraction: Deflection of light from outside the atmosphere.

    Note:
        The protocol is structural: any class implementing these methods is accepted by
        `Calculator`, whether or not it derives from BaseIntegrationEngine.
    """

    def __init__(self, config: Optional[ConfigT] = None) -> None:
        ...

    @abstractmethod
    def cast_ray(self, env: Environment, start_h: float, angle_rad: float, straight: bool = False) -> Path:
        """Trace a ray launched from `start_h` (m) at elevation `angle_rad`.

        Raises:
            ValueError: If the launch angle is not strictly between -90 and 90 degrees.
            DomainError: If the start lies below the centre of a spherical planet.
        """
        ...

    @abstractmethod
    def cast_ray_target(self, env: Environment, start_h: float, target_h: float, target_dist: float,
                        straight: bool = False) -> Path:
        """Trace the ray from `start_h` that reaches `target_h` at ground distance `target_dist`.

        Raises:
            ShootingError: If the launch angle search fails.
        """
        ...

    @abstractmethod
    def find_dist_for_h(self, path: Path, target_h: float) -> float:
        """Ground distance (m) at which `path` reaches `target_h`."""
        ...

    @abstractmethod
    def horizon(self, env: Environment, start_h: float, straight: bool = False) -> Any:
        """Distance (m) and angle (radians) to the horizon seen from `start_h`."""
        ...

    @abstractmethod
    def astronomical_refraction(self, env: Environment, start_h: float, angle_rad: float,
                                straight: bool = False) -> float:
        """Deflection (radians) of light reaching `start_h` at apparent elevation `angle_rad`."""
        ...
