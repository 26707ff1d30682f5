import logging
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def configure_logging_for_tests(caplog):
    """Capture query_catalogue log records at every level."""
    caplog.set_level(logging.DEBUG, logger="query_catalogue")
    yield


@pytest.fixture
def dataset_path():
    return FIXTURES_DIR / "dataset.json"
