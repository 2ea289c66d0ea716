"""Refractive index of air and its vertical gradient.

The refractivity follows the modified Edlén equation (Birch & Downs, 1994) as published
in the NIST Engineering Metrology Toolbox. Water vapour enters through its partial
pressure, computed from the IAPWS saturation formula over water or over ice.

Functions:
    air_index_minus_1: Refractivity `n - 1` from wavelength, pressure, temperature and humidity.
    saturation_vapor_pressure: Saturation vapour pressure of water (Pa).
    n_minus_1, n, dn: Refractivity, index and gradient at an altitude of an atmosphere.
"""
import math

from py_atmrefraction.atmosphere import AtmosphereProtocol
from py_atmrefraction.constants import (cDefaultWavelength, cGradientEpsilon,
                                        cStandardHumidity, cZeroCelsius)
from py_atmrefraction.exceptions import DomainError

__all__ = (
    'air_index_minus_1',
    'saturation_vapor_pressure',
    'n_minus_1',
    'n',
    'dn',
)

# Modified Edlén coefficients
_cA = 8342.54
_cB = 2406147.0
_cC = 15998.0
_cD = 96095.43
_cE = 0.601
_cF = 0.00972
_cG = 0.003661

# IAPWS saturation vapour pressure over water
_cK = (1167.05214528, -724213.167032, -17.0738469401, 12020.8247025, -3232555.03223,
       14.9151086135, -4823.26573616, 405113.405421, -0.238555575678, 650.175348448)

# Saturation vapour pressure over ice
_cTripleTemperature = 273.16
_cTriplePressure = 611.657
_cIceA1 = -13.928169
_cIceA2 = 34.7078238


def saturation_vapor_pressure(temperature: float) -> float:
    """Saturation vapour pressure in Pa.

    Args:
        temperature: Air temperature in Kelvin.
    """
    if temperature >= cZeroCelsius:
        k1, k2, k3, k4, k5, k6, k7, k8, k9, k10 = _cK
        omega = temperature + k9 / (temperature - k10)
        a = omega * omega + k1 * omega + k2
        b = k3 * omega * omega + k4 * omega + k5
        c = k6 * omega * omega + k7 * omega + k8
        x = -b + math.sqrt(b * b - 4 * a * c)
        return 1e6 * (2 * c / x) ** 4
    theta = temperature / _cTripleTemperature
    y = _cIceA1 * (1 - theta ** -1.5) + _cIceA2 * (1 - theta ** -1.25)
    return _cTriplePressure * math.exp(y)


def air_index_minus_1(wavelength: float, pressure: float, temperature: float,
                      relative_humidity: float = cStandardHumidity) -> float:
    """Refractivity `n - 1` of moist air.

    Args:
        wavelength: Vacuum wavelength in metres.
        pressure: Total pressure in Pa.
        temperature: Temperature in Kelvin.
        relative_humidity: Relative humidity in percent (0 to 100).

    Returns:
        Dimensionless refractivity.
    """
    t = temperature - cZeroCelsius
    sigma2 = 1.0 / (wavelength * 1e6) ** 2  # inverse square of wavelength in µm
    ns_minus_1 = 1e-8 * (_cA + _cB / (130 - sigma2) + _cC / (38.9 - sigma2))
    x = (1 + 1e-8 * (_cE - _cF * t) * pressure) / (1 + _cG * t)
    ntp_minus_1 = pressure * ns_minus_1 * x / _cD
    if relative_humidity == 0.0:
        return ntp_minus_1
    pv = relative_humidity / 100.0 * saturation_vapor_pressure(temperature)
    return ntp_minus_1 - 1e-10 * (292.75 / temperature) * (3.7345 - 0.0401 * sigma2) * pv


def n_minus_1(atm: AtmosphereProtocol, h: float, wavelength: float = cDefaultWavelength) -> float:
    """Refractivity of dry air at altitude `h` of `atm`.

    Raises:
        DomainError: If the atmosphere gives a negative pressure or a non-positive temperature.
    """
    pressure, temperature = atm.pressure(h), atm.temperature(h)
    if not (pressure >= 0.0 and math.isfinite(pressure)):
        raise DomainError(f"Pressure {pressure} Pa at altitude {h} m is not a finite non-negative value")
    if not (temperature > 0.0 and math.isfinite(temperature)):
        raise DomainError(f"Temperature {temperature} K at altitude {h} m is not positive and finite")
    return air_index_minus_1(wavelength, pressure, temperature, cStandardHumidity)


def n(atm: AtmosphereProtocol, h: float, wavelength: float = cDefaultWavelength) -> float:
    """Refractive index at altitude `h`.

    Raises:
        DomainError: If the index is not positive and finite.
    """
    value = n_minus_1(atm, h, wavelength) + 1.0
    if not (value > 0.0 and math.isfinite(value)):
        raise DomainError(f"Refractive index {value} at altitude {h} m is not positive and finite")
    return value


def dn(atm: AtmosphereProtocol, h: float, wavelength: float = cDefaultWavelength) -> float:
    """Vertical derivative of the refractive index (1/m) by centred difference."""
    eps = cGradientEpsilon
    return (n_minus_1(atm, h + eps, wavelength) - n_minus_1(atm, h - eps, wavelength)) / (2.0 * eps)
