"""Refraction calculator interface and engine loading system.

This module provides the main `Calculator` class, the primary interface for ray tracing.
Engines are loaded dynamically through Python entry points of the `py_atmrefraction`
group, and the module relies on the EngineProtocol to ensure that engines offer the
necessary methods.

Key Classes:
    - Calculator: Refraction calculator with pluggable engine support
    - _EngineLoader: Internal utility for discovering and loading engine plugins
"""
from dataclasses import dataclass, field
from importlib.metadata import entry_points, EntryPoint
from typing import Generic, Any

from typing_extensions import Union, Optional, TypeVar, Type, Generator, Dict

from py_atmrefraction.engines import RK4IntegrationEngine
from py_atmrefraction.generics.engine import EngineProtocol
from py_atmrefraction.logger import logger

ConfigT = TypeVar('ConfigT', covariant=True)

DEFAULT_ENTRY_SUFFIX = '_engine'
DEFAULT_ENTRY_GROUP = 'py_atmrefraction'
DEFAULT_ENTRY: Type[EngineProtocol] = RK4IntegrationEngine

EngineProtocolType = Type[EngineProtocol[ConfigT]]
EngineProtocolEntry = Union[str, EngineProtocolType, None]

# Process-wide defaults for calculators built without explicit engine or config (see basicConfig)
_defaults: Dict[str, Any] = {'engine': None, 'config': None}


def set_defaults(engine: EngineProtocolEntry = None, config: Optional[Dict[str, Any]] = None) -> None:
    """Set the engine and engine config used by `Calculator()` when it is given neither."""
    _defaults['engine'] = engine
    _defaults['config'] = dict(config) if config else None
    logger.debug(f"Calculator defaults: engine={engine}, config={_defaults['config']}")


@dataclass
class _EngineLoader:
    _entry_point_group = DEFAULT_ENTRY_GROUP
    _entry_point_suffix = DEFAULT_ENTRY_SUFFIX

    @classmethod
    def _get_entries_by_group(cls) -> set:
        all_entry_points = entry_points()
        if hasattr(all_entry_points, 'select'):  # for importlib >= 5
            refraction_entry_points = all_entry_points.select(group=cls._entry_point_group)
        elif hasattr(all_entry_points, 'get'):  # for importlib < 5
            refraction_entry_points = all_entry_points.get(cls._entry_point_group, [])  # type: ignore[arg-type]
        else:
            raise RuntimeError('Entry point not supported')
        return set(refraction_entry_points)

    @classmethod
    def iter_engines(cls) -> Generator[EntryPoint, None, None]:
        """Iterate over all available engines in the entry points."""
        for ep in cls._get_entries_by_group():
            if ep.name.endswith(cls._entry_point_suffix):
                yield ep

    @classmethod
    def _load_from_entry(cls, ep: EntryPoint) -> Optional[EngineProtocolType]:
        try:
            handle: EngineProtocolType = ep.load()
            if not isinstance(handle, EngineProtocol):
                raise TypeError(f"Unsupported engine {ep.value} does not implement EngineProtocol")
            logger.info(f"Loaded calculator from: {ep.value} (Class: {handle})")
            return handle  # type: ignore
        except ImportError as e:
            logger.error(f"Error loading engine from {ep.value}: {e}")
        except AttributeError as e:
            logger.error(f"Error loading attribute from {ep.value}: {e}")
        except ValueError as e:
            logger.error(f"Invalid engine reference {ep.value}: {e}")
        return None

    @classmethod
    def load(cls, entry_point: EngineProtocolEntry = DEFAULT_ENTRY) -> Type[EngineProtocol[Any]]:
        """Engine class for an entry point name, a `module:Class` path, or an engine class.

        Raises:
            ValueError: If no engine matches the given name.
            TypeError: If `entry_point` is neither a string nor an engine class.
        """
        if entry_point is None:
            entry_point = DEFAULT_ENTRY
        if isinstance(entry_point, EngineProtocol):
            return entry_point  # type: ignore
        if isinstance(entry_point, str):
            for ep in cls.iter_engines():
                if ep.name == entry_point:
                    if handle := cls._load_from_entry(ep):
                        return handle

            if ':' in entry_point:
                ep = EntryPoint(entry_point, entry_point, cls._entry_point_group)
                if handle := cls._load_from_entry(ep):
                    return handle
            raise ValueError(f"No 'engine' entry point found containing '{entry_point}'")
        raise TypeError("Invalid entry_point type, expected 'str' or 'EngineProtocol'")


@dataclass
class Calculator(Generic[ConfigT]):
    """Basic interface for the refraction calculator.

    Attributes:
        config: Engine configuration overrides (e.g. BaseEngineConfigDict). When both `config`
            and `engine` are omitted, the defaults set by `basicConfig` apply.
        engine: Entry point name (e.g. 'scipy_engine'), `module:Class` path, or engine class.

    Examples:
        >>> from py_atmrefraction import Calculator, Environment, Spherical, us76_atmosphere
        >>> calc = Calculator()
        >>> env = Environment(Spherical(), us76_atmosphere())
        >>> path = calc.cast_ray(env, 1.0, 0.0)
        >>> path.h_at_dist(10_000.0) > 1.0  # the ray curves away from the surface
        True
    """

    config: Optional[ConfigT] = field(default=None)
    engine: EngineProtocolEntry = field(default=None)
    _engine_instance: EngineProtocol[Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.engine is None and self.config is None:
            self.engine = _defaults['engine']
            self.config = _defaults['config']
        self._engine_instance = _EngineLoader.load(self.engine)(self.config)

    def __getattr__(self, item: str) -> Any:
        """Delegate attribute access to the underlying engine instance.

        Called only for attributes not found on the `Calculator` itself, so `calc.cast_ray`,
        `calc.horizon` and the other EngineProtocol methods resolve to the engine.

        Raises:
            AttributeError: If the attribute is not found on either the
                `Calculator` object or its `_engine_instance`.

        Examples:
            >>> calc = Calculator(engine=DEFAULT_ENTRY)
            >>> try:
            ...     calc.unknown_method()
            ... except AttributeError as e:
            ...     print(e)
            'Calculator' object or its underlying engine 'RK4IntegrationEngine' has no attribute 'unknown_method'
        """
        if item == '_engine_instance':
            raise AttributeError(item)
        if hasattr(self._engine_instance, item):
            return getattr(self._engine_instance, item)
        raise AttributeError(
            f"'{self.__class__.__name__}' object or its underlying engine "
            f"'{self._engine_instance.__class__.__name__}' has no attribute '{item}'"
        )

    @staticmethod
    def iter_engines() -> Generator[EntryPoint, None, None]:
        """Iterate all available engines in the entry points."""
        yield from _EngineLoader.iter_engines()


__all__ = ('Calculator', '_EngineLoader', 'set_defaults')
