"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
load_dotenv()


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "neo4j: mark test as requiring a running Neo4j server")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--neo4j",
        action="store_true",
        default=False,
        help="Run tests that talk to a real Neo4j server",
    )


def pytest_collection_modifyitems(config, items):
    """Skip neo4j tests unless --neo4j flag is provided."""
    if config.getoption("--neo4j"):
        return

    skip_live = pytest.mark.skip(reason="Need --neo4j option to run")
    for item in items:
        if item.get_closest_marker("neo4j"):
            item.add_marker(skip_live)
