"""Ray tracing of light through a refracting atmosphere."""

import importlib.metadata

__version__ = importlib.metadata.version("py_atmrefraction")

# Standard library imports
import os
import sys

# Third-party imports
from typing_extensions import Any, Dict, Optional

# Local imports
from .logger import logger as log
from .interface import set_defaults

if sys.version_info[:2] < (3, 11):
    import tomli as tomllib
else:
    import tomllib


def _load_config(filepath: Optional[str] = None, suppress_warnings: bool = False) -> None:
    """Load calculator defaults from a .pyrefr.toml file.

    Args:
        filepath: Path to configuration file. If None, searches for .pyrefr.toml or pyrefr.toml
        suppress_warnings: If True, suppress warning messages
    """
    def find_pyrefr_toml(start_dir: str = os.getcwd()) -> Optional[str]:
        """Search upwards from `start_dir` for .pyrefr.toml or pyrefr.toml.

        Returns:
            The absolute path to the configuration file if found, otherwise None.
        """
        current_dir = os.path.abspath(start_dir)
        while True:
            for pyrefr_path in (os.path.join(current_dir, '.pyrefr.toml'),
                                os.path.join(current_dir, 'pyrefr.toml')):
                if os.path.exists(pyrefr_path):
                    return os.path.abspath(pyrefr_path)

            parent_dir = os.path.dirname(current_dir)
            # Root directory reached
            if parent_dir == current_dir:
                return None
            current_dir = parent_dir

    if filepath is None:
        filepath = find_pyrefr_toml()

    if filepath is None:
        return

    log.debug(f"Found {os.path.basename(filepath)} at {os.path.dirname(filepath)}")
    with open(filepath, "rb") as fp:
        _config = tomllib.load(fp)

    if _pyrefr := _config.get('pyrefr'):
        engine_config = _pyrefr.get('engine_config')
        if engine_config is not None and not isinstance(engine_config, dict):
            raise ValueError("`pyrefr.engine_config` must be a table")
        set_defaults(_pyrefr.get('engine'), engine_config)
    elif not suppress_warnings:
        log.warning("Config has no `pyrefr` section")

    log.debug("Calculator defaults load success")


def _basic_config(filename: Optional[str] = None,
                  engine: Optional[str] = None,
                  engine_config: Optional[Dict[str, Any]] = None,
                  suppress_warnings: bool = False) -> None:
    """Set the defaults of `Calculator()` from a file or from arguments.

    Args:
        filename: Configuration file path
        engine: Engine entry point name
        engine_config: Engine configuration overrides
        suppress_warnings: If True, suppress warning messages

    Raises:
        ValueError: If both filename and engine or engine_config are provided
    """
    if filename and (engine or engine_config):
        raise ValueError("Can't use engine settings and config file at same time")
    if engine or engine_config:
        set_defaults(engine, engine_config)
    else:
        # trying to load defaults from pyrefr.toml
        _load_config(filename, suppress_warnings)


basicConfig = _basic_config

basicConfig(suppress_warnings=True)


from .air import air_index_minus_1, saturation_vapor_pressure, n_minus_1, n, dn
from .atmosphere import (AtmosphereProtocol, AtmosphereLayer, Atmosphere, Homogeneous, Vacuum,
                         us76_atmosphere, load_atmosphere)
from .conditions import Flat, Spherical, EarthShape, Environment, RayProps
from .engines import (create_base_engine_config, BaseEngineConfig, BaseEngineConfigDict,
                      BaseIntegrationEngine, Horizon, RK4IntegrationEngine,
                      SciPyIntegrationEngine, SciPyEngineConfigDict)
from .exceptions import (InvalidConfigurationError, AtmosphereLoadingError, SolverRuntimeError,
                         DomainError, IntegrationError, RangeError, ShootingError)
from .interface import Calculator, _EngineLoader
from .logger import logger, enable_file_logging, disable_file_logging
from .paths import Path, RaySample, RayPath, StraightPath, find_dist_for_h
from .state import RayState, RayStateDerivative

# DRY: build __all__ from global symbols
_SKIP_GLOBALS = {
    # Skip Python builtins
    "__name__", "__doc__", "__package__", "__loader__", "__spec__",
    "__file__", "__cached__", "__builtins__",
    # Skip imported modules
    "tomllib", "sys", "os", "importlib",
    # Skip typing helpers
    "Any", "Dict", "Optional",
    # Skip private/internal symbols
    "_load_config", "_basic_config", "log", "set_defaults",
    # Skip submodules
    "air", "atmosphere", "conditions", "constants", "engines", "exceptions", "generics",
    "interface", "interpolation", "paths", "state",
}
# Build __all__ from the module's global namespace
__all__ = [
    name for name in globals()
    if not name.startswith("_") and name not in _SKIP_GLOBALS
]
