"""Atmosphere profiles consumed by the refraction model.

What this module provides
- AtmosphereProtocol: structural type for anything exposing `pressure(h)` and `temperature(h)`.
- Atmosphere: layered atmosphere with piecewise-linear temperature and hydrostatic pressure.
- us76_atmosphere: the US Standard Atmosphere 1976 up to 86 km, with its top layer extended upwards.
- Homogeneous: constant pressure and temperature at every altitude (uniform refractive index).
- Vacuum: a Homogeneous atmosphere with zero pressure (refractive index exactly 1).
- load_atmosphere: read a declarative layer definition from a YAML or TOML file.

Design notes
- Altitudes are in metres, temperatures in Kelvin, pressures in Pa, lapse rates in K/m.
- The first layer extends downwards and the last layer upwards without limit, so an atmosphere
    can be queried at any altitude a ray reaches, including below the reference level.
- When `geopotential` is set, layer altitudes are geopotential and queries (given in geometric
    altitude) are converted before the layer lookup.

Examples:
>>> atm = us76_atmosphere()
>>> round(atm.temperature(0.0), 2)
288.15
>>> from_file = load_atmosphere("tropical.yaml")  # doctest: +SKIP
"""
from __future__ import annotations

import math
import os
import sys
from bisect import bisect_right
from typing import Any, Mapping, NamedTuple, Sequence

import yaml
from typing_extensions import Protocol, runtime_checkable

from py_atmrefraction.constants import (cGasConstant, cGravity, cMolarMassAir, cStandardPressure,
                                        cStandardTemperature, cUS76EarthRadius)
from py_atmrefraction.exceptions import AtmosphereLoadingError
from py_atmrefraction.logger import logger

if sys.version_info[:2] < (3, 11):
    import tomli as tomllib
else:
    import tomllib

__all__ = (
    'AtmosphereProtocol',
    'AtmosphereLayer',
    'Atmosphere',
    'Homogeneous',
    'Vacuum',
    'us76_atmosphere',
    'load_atmosphere',
)

_cHydrostaticConstant = cGravity * cMolarMassAir / cGasConstant  # g0*M/R*, K/m


@runtime_checkable
class AtmosphereProtocol(Protocol):
    """Pressure and temperature as functions of altitude."""

    def pressure(self, h: float) -> float:
        """Pressure (Pa) at altitude `h` (m)."""
        ...

    def temperature(self, h: float) -> float:
        """Temperature (K) at altitude `h` (m)."""
        ...


class AtmosphereLayer(NamedTuple):
    """Layer starting at `altitude` with temperature `temperature` and constant `lapse_rate`."""

    altitude: float
    temperature: float
    lapse_rate: float

    def temperature_at(self, z: float) -> float:
        return self.temperature + self.lapse_rate * (z - self.altitude)

    def pressure_ratio(self, z: float) -> float:
        """Ratio of the pressure at `z` to the pressure at the layer base."""
        if self.lapse_rate == 0.0:
            return math.exp(-_cHydrostaticConstant * (z - self.altitude) / self.temperature)
        t = self.temperature_at(z)
        if t <= 0.0:
            raise ValueError(f"Temperature {t} K at altitude {z} m is not positive")
        return (t / self.temperature) ** (-_cHydrostaticConstant / self.lapse_rate)


class Atmosphere:
    """Layered atmosphere.

    Args:
        layers: Layers in strictly increasing altitude order.
        reference_pressure: Pressure (Pa) at `reference_altitude`.
        reference_altitude: Altitude (m) where `reference_pressure` applies.
        geopotential: Whether layer altitudes are geopotential.
    """

    def __init__(self, layers: Sequence[AtmosphereLayer],
                 reference_pressure: float = cStandardPressure,
                 reference_altitude: float = 0.0,
                 geopotential: bool = False):
        if not layers:
            raise ValueError("Atmosphere needs at least one layer")
        for lower, upper in zip(layers, layers[1:]):
            if upper.altitude <= lower.altitude:
                raise ValueError(f"Layer altitudes must increase: {lower.altitude} >= {upper.altitude}")
        for layer in layers:
            if layer.temperature <= 0.0:
                raise ValueError(f"Layer at {layer.altitude} m has non-positive temperature {layer.temperature} K")
        self.layers: tuple = tuple(layers)
        self.geopotential = geopotential
        self.reference_pressure = reference_pressure
        self.reference_altitude = reference_altitude
        self._bases = [layer.altitude for layer in self.layers]
        self._base_pressures = self._compute_base_pressures()

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(layers={len(self.layers)}, "
                f"reference_pressure={self.reference_pressure}, reference_altitude={self.reference_altitude}, "
                f"geopotential={self.geopotential})")

    def _compute_base_pressures(self) -> list:
        z_ref = self._to_model_altitude(self.reference_altitude)
        k = self._layer_index(z_ref)
        pressures = [0.0] * len(self.layers)
        pressures[k] = self.reference_pressure / self.layers[k].pressure_ratio(z_ref)
        for i in range(k, len(self.layers) - 1):
            pressures[i + 1] = pressures[i] * self.layers[i].pressure_ratio(self.layers[i + 1].altitude)
        for i in range(k, 0, -1):
            pressures[i - 1] = pressures[i] / self.layers[i - 1].pressure_ratio(self.layers[i].altitude)
        return pressures

    def _to_model_altitude(self, h: float) -> float:
        if self.geopotential:
            return cUS76EarthRadius * h / (cUS76EarthRadius + h)
        return h

    def _layer_index(self, z: float) -> int:
        return max(bisect_right(self._bases, z) - 1, 0)

    def temperature(self, h: float) -> float:
        z = self._to_model_altitude(h)
        t = self.layers[self._layer_index(z)].temperature_at(z)
        if t <= 0.0:
            raise ValueError(f"Temperature {t} K at altitude {h} m is not positive")
        return t

    def pressure(self, h: float) -> float:
        z = self._to_model_altitude(h)
        i = self._layer_index(z)
        return self._base_pressures[i] * self.layers[i].pressure_ratio(z)

    @classmethod
    def from_def(cls, definition: Mapping[str, Any]) -> Atmosphere:
        """Build an atmosphere from a declarative mapping.

        The mapping holds a `layers` list and optionally `pressure` (`{altitude, value}`) and
        `geopotential`. The first layer must give a `temperature`. A later layer without
        `temperature` continues from the layer below; a layer without `lapse_rate` takes the
        rate that reaches the next layer's temperature, or 0 if the next layer gives none.

        Raises:
            AtmosphereLoadingError: If the definition is malformed.
        """
        if not isinstance(definition, Mapping):
            raise AtmosphereLoadingError(f"Atmosphere definition must be a mapping, got {type(definition).__name__}")
        unknown = set(definition) - {'layers', 'pressure', 'geopotential'}
        if unknown:
            raise AtmosphereLoadingError(f"Unknown atmosphere keys: {sorted(unknown)}")
        raw_layers = definition.get('layers')
        if not isinstance(raw_layers, Sequence) or isinstance(raw_layers, str) or not raw_layers:
            raise AtmosphereLoadingError("Atmosphere definition needs a non-empty 'layers' list")

        altitudes = []
        temperatures: list = []
        lapse_rates: list = []
        for index, raw in enumerate(raw_layers):
            if not isinstance(raw, Mapping):
                raise AtmosphereLoadingError(f"Layer {index} must be a mapping")
            unknown = set(raw) - {'altitude', 'temperature', 'lapse_rate'}
            if unknown:
                raise AtmosphereLoadingError(f"Unknown keys in layer {index}: {sorted(unknown)}")
            if 'altitude' not in raw:
                raise AtmosphereLoadingError(f"Layer {index} has no 'altitude'")
            altitudes.append(_as_float(raw['altitude'], f"layers[{index}].altitude"))
            temperatures.append(_as_float(raw['temperature'], f"layers[{index}].temperature")
                                if raw.get('temperature') is not None else None)
            lapse_rates.append(_as_float(raw['lapse_rate'], f"layers[{index}].lapse_rate")
                               if raw.get('lapse_rate') is not None else None)
        if temperatures[0] is None:
            raise AtmosphereLoadingError("The first layer must give a 'temperature'")
        for lower, upper in zip(altitudes, altitudes[1:]):
            if upper <= lower:
                raise AtmosphereLoadingError(f"Layer altitudes must increase: {lower} >= {upper}")

        layers = []
        temperature: float = temperatures[0]
        for i, altitude in enumerate(altitudes):
            if i > 0:
                thickness = altitude - altitudes[i - 1]
                continued = layers[-1].temperature + layers[-1].lapse_rate * thickness
                temperature = temperatures[i] if temperatures[i] is not None else continued
            lapse_rate = lapse_rates[i]
            if lapse_rate is None:
                if i + 1 < len(altitudes) and temperatures[i + 1] is not None:
                    lapse_rate = (temperatures[i + 1] - temperature) / (altitudes[i + 1] - altitude)
                else:
                    lapse_rate = 0.0
            if temperature <= 0.0:
                raise AtmosphereLoadingError(f"Layer {i} has non-positive temperature {temperature} K")
            layers.append(AtmosphereLayer(altitude, temperature, lapse_rate))

        reference_altitude, reference_pressure = 0.0, cStandardPressure
        if (pressure := definition.get('pressure')) is not None:
            if not isinstance(pressure, Mapping) or 'value' not in pressure:
                raise AtmosphereLoadingError("'pressure' must be a mapping with a 'value'")
            reference_pressure = _as_float(pressure['value'], "pressure.value")
            reference_altitude = _as_float(pressure.get('altitude', 0.0), "pressure.altitude")
            if reference_pressure <= 0.0:
                raise AtmosphereLoadingError(f"Reference pressure must be positive, got {reference_pressure}")

        geopotential = definition.get('geopotential', False)
        if not isinstance(geopotential, bool):
            raise AtmosphereLoadingError("'geopotential' must be a boolean")
        return cls(layers, reference_pressure, reference_altitude, geopotential)


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AtmosphereLoadingError(f"'{name}' must be a number, got {value!r}")
    return float(value)


class Homogeneous:
    """Atmosphere with the same pressure and temperature at every altitude."""

    def __init__(self, pressure: float = cStandardPressure, temperature: float = cStandardTemperature):
        self._pressure = pressure
        self._temperature = temperature

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(pressure={self._pressure}, temperature={self._temperature})"

    def pressure(self, h: float) -> float:
        return self._pressure

    def temperature(self, h: float) -> float:
        return self._temperature


class Vacuum(Homogeneous):
    """Vacuum (zero pressure => refractive index 1 everywhere)."""

    def __init__(self, temperature: float = cStandardTemperature):
        super().__init__(0.0, temperature)


def us76_atmosphere() -> Atmosphere:
    """US Standard Atmosphere 1976, geopotential layers up to 84.852 km."""
    return Atmosphere(
        [
            AtmosphereLayer(0.0, 288.15, -6.5e-3),
            AtmosphereLayer(11_000.0, 216.65, 0.0),
            AtmosphereLayer(20_000.0, 216.65, 1.0e-3),
            AtmosphereLayer(32_000.0, 228.65, 2.8e-3),
            AtmosphereLayer(47_000.0, 270.65, 0.0),
            AtmosphereLayer(51_000.0, 270.65, -2.8e-3),
            AtmosphereLayer(71_000.0, 214.65, -2.0e-3),
            AtmosphereLayer(84_852.0, 186.946, 0.0),
        ],
        reference_pressure=cStandardPressure,
        reference_altitude=0.0,
        geopotential=True,
    )


def load_atmosphere(path: str) -> Atmosphere:
    """Load an atmosphere definition from a YAML (`.yaml`, `.yml`) or TOML (`.toml`) file.

    Raises:
        AtmosphereLoadingError: If the file cannot be read or holds a malformed definition.
    """
    suffix = os.path.splitext(path)[1].lower()
    logger.debug(f"Loading atmosphere from {path}")
    try:
        if suffix in ('.yaml', '.yml'):
            with open(path, 'r', encoding='utf-8') as fp:
                data = yaml.safe_load(fp)
        elif suffix == '.toml':
            with open(path, 'rb') as fp:
                data = tomllib.load(fp)
        else:
            raise AtmosphereLoadingError(f"Unsupported atmosphere file format '{suffix}', use .yaml, .yml or .toml")
    except OSError as e:
        raise AtmosphereLoadingError(f"Couldn't read atmosphere file {path}: {e}") from e
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as e:
        raise AtmosphereLoadingError(f"Couldn't parse atmosphere file {path}: {e}") from e
    return Atmosphere.from_def(data)
