"""Integration engines for atmospheric ray tracing.

All engines implement the EngineProtocol interface and share the inverse problems
(target shooting, horizon and astronomical refraction) of BaseIntegrationEngine.

Available Engines:
    - BaseIntegrationEngine: Abstract base class for all integration engines
    - RK4IntegrationEngine: Adaptive fourth-order Runge-Kutta method (default)
    - SciPyIntegrationEngine: SciPy OdeSolver stepping (requires scipy)

Engine Selection Guidelines:
    - Default: RK4IntegrationEngine (rk4_engine) - no dependencies beyond the base install
    - Cross-checking: SciPyIntegrationEngine (scipy_engine) - requires py_atmrefraction[scipy]

Examples:
    >>> from py_atmrefraction.engines import RK4IntegrationEngine, BaseEngineConfigDict
    >>> custom_config = BaseEngineConfigDict(cMaximumStep=1000.0)

    >>> from py_atmrefraction import Calculator
    >>> calc = Calculator(engine="scipy_engine")  # By name
    >>> calc = Calculator(config=custom_config, engine=RK4IntegrationEngine)  # By class
"""

from .base_engine import *
from .rk4 import *
from .scipy_engine import *

__all__ = (
    # Base engine infrastructure
    'create_base_engine_config',
    'BaseEngineConfig',
    'BaseEngineConfigDict',
    'DEFAULT_BASE_ENGINE_CONFIG',
    'BaseIntegrationEngine',
    'Horizon',

    # Integration engines
    'RK4IntegrationEngine',
    'SciPyIntegrationEngine',

    # SciPy engine configuration
    'SciPyEngineConfig',
    'SciPyEngineConfigDict',
    'DEFAULT_SCIPY_ENGINE_CONFIG',
    'create_scipy_engine_config',
)
