"""Generic protocols shared by engines and the calculator interface."""

from .engine import EngineProtocol, ConfigT

__all__ = ('EngineProtocol', 'ConfigT')
