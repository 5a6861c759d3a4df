"""
Shared pytest fixtures for streamsketch tests.
"""

import logging
from pathlib import Path

import pytest

from streamsketch.logging_config import LOGGER_NAME


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Returns the root test_output directory. Created once per test session.
    Files here persist after tests complete for easy access.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Returns a directory for the current test to write output files.
    Directory structure: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_dir = test_output_root / module_name / request.node.name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


def _reset_logger() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
    for name, child in list(logging.root.manager.loggerDict.items()):
        if name.startswith(f"{LOGGER_NAME}.") and isinstance(child, logging.Logger):
            child.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def reset_streamsketch_logging():
    """Start and finish every test with only the library's NullHandler."""
    _reset_logger()
    yield
    _reset_logger()
