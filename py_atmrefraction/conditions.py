"""Environment and per-ray properties used by the integration engines.

What this module provides
- Flat, Spherical: the two planet shapes (EarthShape).
- Environment: planet shape, atmosphere and wavelength of a run.
- RayProps: one ray's launch parameters converted to the integrator's coordinates, together with
    the ray equation (`derivative`) for the chosen geometry.

Coordinates
- Flat planet: the independent variable `x` is ground distance (m) and `dr = dh/dx`.
- Spherical planet: `x` is the central angle `phi` (radians) and `dr = dh/dphi`. Ground distance
    is `phi * radius` and the local elevation of the ray is `atan(dr / (radius + h))`.

Examples:
>>> from py_atmrefraction.atmosphere import us76_atmosphere
>>> env = Environment(Spherical(6_378_000.0), us76_atmosphere())
>>> props = RayProps(env, start_h=1.0, launch_angle_rad=0.0)
>>> props.initial_state()
RayState(x=0.0, h=1.0, dr=0.0)
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field

from typing_extensions import Optional, Union

from py_atmrefraction.air import dn, n
from py_atmrefraction.atmosphere import AtmosphereProtocol
from py_atmrefraction.constants import cDefaultWavelength, cEarthRadius
from py_atmrefraction.exceptions import DomainError
from py_atmrefraction.state import RayState, RayStateDerivative

__all__ = (
    'Flat',
    'Spherical',
    'EarthShape',
    'Environment',
    'RayProps',
)


@dataclass(frozen=True)
class Flat:
    """Flat planet."""


@dataclass(frozen=True)
class Spherical:
    """Spherical planet of the given radius (m)."""

    radius: float = cEarthRadius

    def __post_init__(self):
        if not (math.isfinite(self.radius) and self.radius > 0):
            raise ValueError(f"Planet radius must be positive and finite, got {self.radius}")


EarthShape = Union[Flat, Spherical]


@dataclass(frozen=True)
class Environment:
    """Conditions shared by every ray of a run.

    Attributes:
        shape: Flat or Spherical planet.
        atmosphere: Object exposing `pressure(h)` and `temperature(h)`.
        wavelength: Wavelength (m) at which the refractive index is evaluated.
    """

    shape: EarthShape
    atmosphere: AtmosphereProtocol
    wavelength: float = cDefaultWavelength

    @property
    def radius(self) -> Optional[float]:
        """Planet radius (m), or None for a flat planet."""
        if isinstance(self.shape, Spherical):
            return self.shape.radius
        return None

    def n(self, h: float) -> float:
        return n(self.atmosphere, h, self.wavelength)

    def dn(self, h: float) -> float:
        return dn(self.atmosphere, h, self.wavelength)


@dataclass
class RayProps:
    """Launch parameters of one ray in the integrator's coordinates.

    Attributes:
        env: The run environment.
        start_h: Starting altitude (m).
        launch_angle_rad: Launch elevation above the local horizontal (radians), inside (-pi/2, pi/2).
        radius: Planet radius (m), or None for a flat planet.
        derivative_count: Number of ray equation evaluations made with these props.
    """

    env: Environment
    start_h: float
    launch_angle_rad: float
    radius: Optional[float] = field(init=False)
    derivative_count: int = field(init=False, default=0, repr=False)

    def __post_init__(self):
        if not math.isfinite(self.start_h):
            raise ValueError(f"Starting altitude must be finite, got {self.start_h}")
        if not (math.isfinite(self.launch_angle_rad) and abs(self.launch_angle_rad) < math.pi / 2):
            raise ValueError(f"Launch angle must lie strictly between -90 and 90 degrees, "
                             f"got {math.degrees(self.launch_angle_rad)}")
        self.radius = self.env.radius
        if self.radius is not None and self.radius + self.start_h <= 0:
            raise DomainError(f"Starting altitude {self.start_h} m is below the centre of the planet")

    @property
    def is_spherical(self) -> bool:
        return self.radius is not None

    def initial_state(self) -> RayState:
        if self.radius is None:
            return RayState(0.0, self.start_h, math.tan(self.launch_angle_rad))
        return RayState(0.0, self.start_h, (self.radius + self.start_h) * math.tan(self.launch_angle_rad))

    def x_of_dist(self, dist: float) -> float:
        """Independent variable for a ground distance (m)."""
        if self.radius is None:
            return dist
        return dist / self.radius

    def dist_of_x(self, x: float) -> float:
        """Ground distance (m) for an independent variable value."""
        if self.radius is None:
            return x
        return x * self.radius

    def angle_of_state(self, state: RayState) -> float:
        """Ray elevation above the local horizontal (radians)."""
        if self.radius is None:
            return math.atan(state.dr)
        return math.atan2(state.dr, self.radius + state.h)

    def derivative(self, state: RayState) -> RayStateDerivative:
        """Right-hand side of the ray equation for this geometry.

        Raises:
            DomainError: If the state lies at or below the centre of a spherical planet.
        """
        self.derivative_count += 1
        dr = state.dr
        h = state.h
        if self.radius is None:
            d2r = self.env.dn(h) / self.env.n(h) * (1.0 + dr * dr)
            return RayStateDerivative(1.0, dr, d2r)
        r = h + self.radius
        if r <= 0:
            raise DomainError(f"Ray reached r = {r} m at x = {state.x}, below the centre of the planet")
        dn_n = self.env.dn(h) / self.env.n(h)
        d2r = dr * dr * dn_n + r * r * dn_n + 2.0 * dr * dr / r + r
        return RayStateDerivative(1.0, dr, d2r)
