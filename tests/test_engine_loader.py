from importlib.metadata import EntryPoint
from typing import cast
from types import SimpleNamespace

import pytest

from py_atmrefraction.generics.engine import EngineProtocol
from py_atmrefraction.interface import _EngineLoader, DEFAULT_ENTRY
from py_atmrefraction import Calculator, RK4IntegrationEngine


class TestEngineLoader:
    def test_entry_point_loaded(self, loaded_engine_instance):
        assert isinstance(loaded_engine_instance, EngineProtocol), "Not implements EngineProtocol"

    def test_iter_engines_non_empty(self):
        engines = list(Calculator.iter_engines())
        assert any(ep.name == 'rk4_engine' for ep in engines)

    def test_engine_loader_fallback_invalid(self):
        with pytest.raises(ValueError):
            _ = Calculator(engine='not_an_engine')

    def test_engine_loader_invalid_type(self):
        with pytest.raises(TypeError):
            _ = Calculator(engine=42)  # type: ignore[arg-type]

    def test_load_by_name_and_path(self):
        assert _EngineLoader.load('rk4_engine') is RK4IntegrationEngine
        assert _EngineLoader.load('py_atmrefraction.engines.rk4:RK4IntegrationEngine') is RK4IntegrationEngine

    def test_calculator_delegates_to_engine(self, loaded_engine_instance):
        calc = Calculator(engine=loaded_engine_instance)
        assert calc.cast_ray == calc._engine_instance.cast_ray
        assert calc.trajectory_count == 0

    def test_calculator_attr_missing(self, loaded_engine_instance):
        calc = Calculator(engine=loaded_engine_instance)
        # Missing attribute should raise AttributeError
        with pytest.raises(AttributeError):
            _ = getattr(calc, 'no_such_method')


@pytest.mark.extended
class TestEngineLoaderExtended:

    class DummyEP:
        def __init__(self, name: str, value: str, group: str, loader):
            self.name = name
            self.value = value
            self.group = group
            self._loader = loader

        def load(self):  # Mimic importlib.metadata.EntryPoint API
            return self._loader()

    def test_load_from_entry_import_error(self):
        def boom():
            raise ImportError("nope")

        ep = self.DummyEP("bad_engine", "x.y:Z", _EngineLoader._entry_point_group, boom)
        assert _EngineLoader._load_from_entry(cast(EntryPoint, ep)) is None

    def test_load_from_entry_type_error(self):
        # Return an object that is not an EngineProtocol
        ep = self.DummyEP("not_engine", "x.y:Z", _EngineLoader._entry_point_group, lambda: SimpleNamespace())
        with pytest.raises(TypeError):
            _EngineLoader._load_from_entry(cast(EntryPoint, ep))

    def test_load_with_none_uses_default_engine(self):
        assert _EngineLoader.load(None) is DEFAULT_ENTRY

    def test_missing_module_path(self):
        with pytest.raises(ValueError):
            _EngineLoader.load('no_such_module.engines:Engine')
