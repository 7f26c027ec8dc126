"""
Pytest configuration and shared fixtures for gcodeclean tests.

Provides marker registration and fixtures that build tokenized and
augmented line streams from program text.
"""

import logging
import os
import sys

import pytest

# Add the parent directory to Python path so we can import the package
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from gcodeclean.gcode.parser import tokenize
from gcodeclean.processing.augment import augment

logger = logging.getLogger(__name__)


# ============================================================================
# STREAM FIXTURES
# ============================================================================

@pytest.fixture
def lines_of():
    """
    Tokenize program text into a list of Lines.

    Usage: lines_of("G0 X1\\nG1 Y2")
    """
    def _lines(program: str):
        return list(tokenize(program))

    return _lines


@pytest.fixture
def augmented():
    """
    Tokenize and augment program text into a list of Lines.

    Usage: augmented("G90\\nG1 X1 Y1\\nX2")
    """
    def _augmented(program: str):
        return list(augment(tokenize(program)))

    return _augmented


@pytest.fixture
def texts():
    """Joined text of a list of Lines"""
    def _texts(lines):
        return [str(line) for line in lines]

    return _texts


@pytest.fixture
def program_file(tmp_path):
    """
    Write program text to a temporary .nc file and return its path.
    """
    def _write(program: str, name: str = "part.nc") -> str:
        path = tmp_path / name
        path.write_text(program, encoding="utf-8")
        return str(path)

    return _write


# ============================================================================
# PYTEST CONFIGURATION HOOKS
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "gcode: Tests for G-code tokenizing, modal state and cleaning passes"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that run the whole pipeline over files"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that exercise complete workflows"
    )


def pytest_sessionstart(session):
    """Called after the Session object has been created."""
    logger.info("Starting gcodeclean test session")


def pytest_sessionfinish(session, exitstatus):
    """Called after whole test run finished."""
    logger.info(f"gcodeclean test session finished with exit status: {exitstatus}")
