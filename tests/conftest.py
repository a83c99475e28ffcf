"""Fixtures and configuration for pytest."""

from collections.abc import Iterator

import pytest
from loguru import logger


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "layout: mark test as a memory layout test")
    config.addinivalue_line("markers", "codegen: mark test as checking generated WGSL")


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Collect loguru messages of level WARNING and above."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="WARNING"
    )
    yield messages
    logger.remove(handler_id)
