"""Pytest configuration and fixtures."""

import logging

import pytest


@pytest.fixture(autouse=True)
def _debug_logging(caplog):
    """Capture engine debug logs so failures show the fetch/discard trail."""
    caplog.set_level(logging.DEBUG, logger="taodash")
    yield
