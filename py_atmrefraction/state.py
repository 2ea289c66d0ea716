"""Ray state and its derivative, implemented as immutable NamedTuples.

A ray is described by the independent variable `x` together with the altitude `h`
and its derivative `dr = dh/dx`. The derivative of that triple with respect to `x`
forms a small vector space which the integrators step through.

Typical Usage:
    ```python
    from py_atmrefraction.state import RayState, RayStateDerivative

    state = RayState(0.0, 1.0, 0.0)
    k1 = RayStateDerivative(1.0, 0.0, 1e-8)
    next_state = state.shifted(k1, 10.0)
    ```
"""
from __future__ import annotations

import math
from typing import NamedTuple, Union

__all__ = ('RayState', 'RayStateDerivative')


class RayStateDerivative(NamedTuple):
    """Derivative of a RayState with respect to the independent variable.

    Attributes:
        dx: Rate of change of the independent variable (always 1 for the ray ODE).
        dr: Rate of change of altitude, i.e. the slope `dh/dx`.
        d2r: Rate of change of the slope, i.e. the curvature term `d²h/dx²`.
    """

    dx: float
    dr: float
    d2r: float

    def magnitude(self) -> float:
        """Euclidean norm of the components."""
        return math.hypot(self.dx, self.dr, self.d2r)

    def mul_by_const(self, a: float) -> RayStateDerivative:
        return RayStateDerivative(self.dx * a, self.dr * a, self.d2r * a)

    def add(self, b: RayStateDerivative) -> RayStateDerivative:
        return RayStateDerivative(self.dx + b.dx, self.dr + b.dr, self.d2r + b.d2r)

    def subtract(self, b: RayStateDerivative) -> RayStateDerivative:
        return RayStateDerivative(self.dx - b.dx, self.dr - b.dr, self.d2r - b.d2r)

    def negate(self) -> RayStateDerivative:
        return RayStateDerivative(-self.dx, -self.dr, -self.d2r)

    def __add__(self, other: RayStateDerivative) -> RayStateDerivative:  # type: ignore[override]
        return self.add(other)

    def __radd__(self, other: RayStateDerivative) -> RayStateDerivative:  # type: ignore[override]
        return self.add(other)

    def __sub__(self, other: RayStateDerivative) -> RayStateDerivative:  # type: ignore[override]
        return self.subtract(other)

    def __mul__(self, other: Union[int, float]) -> RayStateDerivative:  # type: ignore[override]
        if isinstance(other, (int, float)):
            return self.mul_by_const(other)
        raise TypeError(other)

    def __rmul__(self, other: Union[int, float]) -> RayStateDerivative:  # type: ignore[override]
        return self.__mul__(other)

    def __truediv__(self, other: Union[int, float]) -> RayStateDerivative:
        return self.mul_by_const(1.0 / other)

    def __neg__(self) -> RayStateDerivative:
        return self.negate()


class RayState(NamedTuple):
    """Point on a ray.

    Attributes:
        x: Independent variable. Ground distance (m) on a flat planet,
           central angle (radians) on a spherical one.
        h: Altitude above the surface (m).
        dr: Slope `dh/dx` in the units of `x`.
    """

    x: float
    h: float
    dr: float

    def shifted(self, derivative: RayStateDerivative, amount: float) -> RayState:
        """Advance the state by `amount` along `derivative`."""
        return RayState(self.x + derivative.dx * amount,
                        self.h + derivative.dr * amount,
                        self.dr + derivative.d2r * amount)

    def magnitude(self) -> float:
        """Norm of the dependent variables, used to scale relative tolerances."""
        return math.hypot(self.h, self.dr)

    def __sub__(self, other: RayState) -> RayStateDerivative:  # type: ignore[override]
        """Component-wise difference of two states, expressed as a derivative-shaped delta."""
        return RayStateDerivative(self.x - other.x, self.h - other.h, self.dr - other.dr)
