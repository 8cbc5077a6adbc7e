from __future__ import annotations

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def _quiet_logger() -> None:
    logger.remove()
