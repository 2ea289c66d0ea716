"""Global physical constants and search limits for refraction calculations.

Constant Categories:
    - Planet geometry: default radius of the spherical Earth
    - Optics: default wavelength, finite-difference step for the index gradient
    - Hydrostatics: gravity, molar mass of air and the universal gas constant
    - Search limits: bracket and tolerance of the distance bisection

References:
    - US Standard Atmosphere 1976 (NOAA-S/T 76-1562)
    - NIST Engineering Metrology Toolbox, "Refractive Index of Air Calculator"
"""

# Third-party imports
from typing_extensions import Final

# =============================================================================
# Planet geometry
# =============================================================================

cEarthRadius: Final[float] = 6_378_000.0
"""Default radius of the spherical Earth (m)"""

# =============================================================================
# Optics
# =============================================================================

cDefaultWavelength: Final[float] = 530e-9
"""Wavelength used for the refractive index when none is given (m)"""

cGradientEpsilon: Final[float] = 0.01
"""Half-width of the centred difference used for dn/dh (m)"""

cStandardHumidity: Final[float] = 0.0
"""Relative humidity used by the core refraction path (%)"""

cZeroCelsius: Final[float] = 273.15
"""Zero degrees Celsius in Kelvin"""

# =============================================================================
# Hydrostatics (US76 values)
# =============================================================================

cGravity: Final[float] = 9.80665
"""Standard gravitational acceleration (m/s^2)"""

cMolarMassAir: Final[float] = 0.0289644
"""Molar mass of dry air (kg/mol)"""

cGasConstant: Final[float] = 8.3144598
"""Universal gas constant (J/(mol*K))"""

cUS76EarthRadius: Final[float] = 6_356_766.0
"""Earth radius used by US76 for the geopotential altitude conversion (m)"""

cStandardTemperature: Final[float] = 288.15
"""Sea-level standard temperature (K)"""

cStandardPressure: Final[float] = 101_325.0
"""Sea-level standard pressure (Pa)"""

# =============================================================================
# Search limits
# =============================================================================

cMaxSearchDistance: Final[float] = 5_000_000.0
"""Upper end of the distance bracket searched by find_dist_for_h (m)"""

cDistanceTolerance: Final[float] = 1e-5
"""Bracket width at which the distance bisection stops (m)"""

cAstronomicalAltitude: Final[float] = 200_000.0
"""Altitude treated as the top of the atmosphere for astronomical refraction (m)"""
