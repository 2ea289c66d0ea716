"""Cubic Hermite interpolation between integrator samples.

Each ray sample carries both a value and its exact derivative (the altitude `h` with slope `dr`,
and the slope `dr` with curvature `d2r`), so a segment between two samples is reconstructed by
the cubic Hermite polynomial matching values and slopes at both ends.
"""

__all__ = ('hermite_eval', 'hermite_eval_pair')


def hermite_eval(x: float, xk: float, xk1: float, yk: float, yk1: float, mk: float, mk1: float) -> float:
    """Evaluate the cubic Hermite polynomial on [xk, xk1].

    Args:
        x: Evaluation point. Points outside the segment extrapolate the same cubic.
        xk: Left x-bound of the segment.
        xk1: Right x-bound of the segment.
        yk: Function value at xk.
        yk1: Function value at xk1.
        mk: Derivative at xk.
        mk1: Derivative at xk1.

    Returns:
        Interpolated y-value at x.

    Raises:
        ZeroDivisionError: If xk and xk1 are identical.
    """
    h = xk1 - xk
    if h == 0:
        raise ZeroDivisionError("Zero interval width in Hermite evaluation")
    t = (x - xk) / h
    t2 = t * t
    t3 = t2 * t
    h00 = 2 * t3 - 3 * t2 + 1
    h10 = t3 - 2 * t2 + t
    h01 = -2 * t3 + 3 * t2
    h11 = t3 - t2
    return h00 * yk + h * h10 * mk + h01 * yk1 + h * h11 * mk1


def hermite_eval_pair(x: float, xk: float, xk1: float,
                      yk: float, yk1: float, mk: float, mk1: float,
                      ck: float, ck1: float):
    """Evaluate a value and its slope on [xk, xk1].

    The value is interpolated from (`yk`, `yk1`) with slopes (`mk`, `mk1`); the slope itself is
    interpolated from (`mk`, `mk1`) with slopes (`ck`, `ck1`).

    Returns:
        Tuple of (value, slope) at x.
    """
    return hermite_eval(x, xk, xk1, yk, yk1, mk, mk1), hermite_eval(x, xk, xk1, mk, mk1, ck, ck1)
