import logging

import pytest

from py_atmrefraction.interface import _EngineLoader, set_defaults
from py_atmrefraction.logger import logger

logger.setLevel(logging.DEBUG)


def pytest_addoption(parser):
    parser.addoption(
        "--engine",
        action="store",
        default=None,  # be sure to use the default value from _EngineLoader
        help="Specify the engine entry point name",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "engine: tests run against the engine selected with --engine")
    config.addinivalue_line("markers", "extended: slower or edge-case tests")


@pytest.fixture(scope="class")
def loaded_engine_instance(request):
    engine_name = request.config.getoption("--engine", None)
    logger.info(f"Attempting to load engine: '{engine_name}'")
    try:
        engine = _EngineLoader.load(engine_name)
        try:
            # probe:
            engine({})
        except Exception as e:
            raise Exception(f"Engine {engine} loaded but probe failed: {e}")
        print(f"Successfully loaded engine: {engine}")
        yield engine
    except Exception as e:
        pytest.exit(f"Cannot start tests:\nFailed to load engine via _EngineLoader: {e}", returncode=1)


@pytest.fixture
def reset_calculator_defaults():
    """Restore the process-wide Calculator defaults after a test changes them."""
    yield
    set_defaults()
