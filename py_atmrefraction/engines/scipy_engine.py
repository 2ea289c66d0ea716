"""SciPy-based integration engine for ray tracing.

This module provides the SciPyIntegrationEngine class, which steps one of SciPy's `OdeSolver`
implementations through the ray equation and hands every accepted step to RayPath.

Suggested Integration Methods:
    RK23: Explicit Runge-Kutta method of order 3(2) with adaptive step control
    RK45: Explicit Runge-Kutta method of order 5(4) (default, good balance)
    DOP853: Explicit Runge-Kutta method of order 8(5,3) (high precision)
    Radau: Implicit Runge-Kutta method of Radau IIA family (stiff systems)
    BDF: Implicit multi-step method (backward differentiation formula)
    LSODA: Adams/BDF method with automatic stiffness detection

Configuration:
    The engine is configured through SciPyEngineConfigDict, which adds `integration_method`
    to the BaseEngineConfigDict options. The base tolerances (cAbsoluteTolerance,
    cRelativeTolerance) and step bounds (cInitialStep, cMaximumStep) are passed to the solver.

Examples:
    >>> from py_atmrefraction.engines.scipy_engine import SciPyIntegrationEngine, SciPyEngineConfigDict
    >>> engine = SciPyIntegrationEngine(SciPyEngineConfigDict(integration_method='DOP853'))

    >>> from py_atmrefraction import Calculator
    >>> calc = Calculator(engine='scipy_engine')

Note:
    This engine requires scipy and numpy to be installed. Install with:
    `pip install py_atmrefraction[scipy]` or `pip install scipy numpy`
"""
# Standard library imports
from dataclasses import asdict, dataclass
from typing import Literal

# Third-party imports
from typing_extensions import Optional, override

# Local imports
from py_atmrefraction.conditions import RayProps
from py_atmrefraction.engines.base_engine import BaseEngineConfig, BaseEngineConfigDict, BaseIntegrationEngine
from py_atmrefraction.exceptions import IntegrationError, RangeError
from py_atmrefraction.logger import logger
from py_atmrefraction.paths import RaySample, RaySampleStream
from py_atmrefraction.state import RayState

__all__ = ('SciPyIntegrationEngine',
           'SciPyEngineConfig',
           'SciPyEngineConfigDict',
           'DEFAULT_SCIPY_ENGINE_CONFIG',
           'create_scipy_engine_config',
)

INTEGRATION_METHOD = Literal["RK23", "RK45", "DOP853", "Radau", "BDF", "LSODA"]

DEFAULT_INTEGRATION_METHOD: INTEGRATION_METHOD = 'RK45'  # Default OdeSolver


@dataclass
class SciPyEngineConfig(BaseEngineConfig):
    """Configuration dataclass for the SciPy integration engine.

    Attributes:
        integration_method: SciPy OdeSolver class to step with.
                           - 'RK45': 4th/5th order Runge-Kutta (default, good balance)
                           - 'RK23': 2nd/3rd order Runge-Kutta (faster, less accurate)
                           - 'DOP853': 8th order Runge-Kutta (highest precision)
                           - 'Radau', 'BDF': Implicit methods for stiff systems
                           - 'LSODA': Automatic stiffness detection

    Error Control:
        The solver keeps `error_estimate <= atol + rtol * |solution|` per component, with
        atol = cAbsoluteTolerance and rtol = cRelativeTolerance.
    """

    integration_method: INTEGRATION_METHOD = DEFAULT_INTEGRATION_METHOD


class SciPyEngineConfigDict(BaseEngineConfigDict, total=False):
    """TypedDict for flexible SciPy integration engine configuration.

    Examples:
        >>> config: SciPyEngineConfigDict = {'integration_method': 'DOP853'}
    """

    integration_method: INTEGRATION_METHOD


DEFAULT_SCIPY_ENGINE_CONFIG: SciPyEngineConfig = SciPyEngineConfig()


def create_scipy_engine_config(interface_config: Optional[BaseEngineConfigDict] = None) -> SciPyEngineConfig:
    config = asdict(DEFAULT_SCIPY_ENGINE_CONFIG)
    if interface_config is not None and isinstance(interface_config, dict):
        config.update(interface_config)
    return SciPyEngineConfig(**config)


# pylint: disable=import-outside-toplevel
class SciPyIntegrationEngine(BaseIntegrationEngine[SciPyEngineConfigDict]):
    """Ray tracing engine stepping a SciPy OdeSolver.

    Attributes:
        integration_step_count: Number of accepted solver steps.
        eval_count: Number of ray equation evaluations requested by the solver.

    Note:
        Requires scipy and numpy packages. Install with:
        `pip install py_atmrefraction[scipy]` or `pip install scipy numpy`
    """

    @override
    def __init__(self, _config: SciPyEngineConfigDict) -> None:
        """Initialize the SciPy integration engine with configuration.

        Args:
            _config: Configuration dictionary; may hold `integration_method` as well as all
                    BaseEngineConfigDict parameters.

        Raises:
            ValueError: If `integration_method` is not one of the supported solvers.
        """
        self._config: SciPyEngineConfig = create_scipy_engine_config(_config)  # type: ignore[assignment]
        if self._config.integration_method not in INTEGRATION_METHOD.__args__:  # type: ignore[attr-defined]
            raise ValueError(f"Unsupported integration_method {self._config.integration_method!r}")
        self.integration_step_count: int = 0
        self.trajectory_count: int = 0
        self.eval_count: int = 0

    def _solver_class(self):
        try:
            from scipy import integrate  # type: ignore[import-untyped]
        except ImportError as e:
            raise ImportError("SciPy and numpy are required for SciPyIntegrationEngine.") from e
        return getattr(integrate, self._config.integration_method)

    @override
    def _integrate(self, props: RayProps) -> RaySampleStream:
        """Generate samples of the ray described by `props`, one per solver step.

        Returns:
            The RangeError reason that stopped the integration.

        Raises:
            IntegrationError: If the solver reports a failure.
        """
        solver_class = self._solver_class()
        import numpy as np

        def diff_eq(x, y):
            """Ray equation in solver form: y = [h, dr]."""
            self.eval_count += 1
            derivative = props.derivative(RayState(x, y[0], y[1]))
            return np.array([derivative.dr, derivative.d2r])

        state = props.initial_state()
        yield RaySample(state, props.derivative(state))

        solver = solver_class(
            diff_eq, state.x, np.array([state.h, state.dr]), props.x_of_dist(self._config.cMaximumDistance),
            rtol=self._config.cRelativeTolerance,
            atol=self._config.cAbsoluteTolerance,
            max_step=props.x_of_dist(self._config.cMaximumStep),
            first_step=props.x_of_dist(min(self._config.cInitialStep, self._config.cMaximumStep)),
        )

        integration_step_count = 0
        while (termination_reason := self._termination_reason(props, state)) is None:
            message = solver.step()
            if solver.status == 'failed':
                raise IntegrationError(f"{self._config.integration_method} failed: {message}",
                                       distance=props.dist_of_x(solver.t))
            state = RayState(float(solver.t), float(solver.y[0]), float(solver.y[1]))
            integration_step_count += 1
            self.integration_step_count += 1
            yield RaySample(state, props.derivative(state))
            if solver.status == 'finished':
                termination_reason = RangeError.MaximumDistanceReached
                break

        logger.debug(f"{self._config.integration_method} ran {integration_step_count} steps ({termination_reason})")
        return termination_reason
