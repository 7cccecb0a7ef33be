"""
Shared pytest configuration and fixtures for all tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path to enable importing project modules
# This allows tests to import from 'provisioning', 'core', 'sql', etc. without installation
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

ASSETS_DIR = Path(__file__).parent / 'assets'


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests - isolated function-level tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interactions")
    config.addinivalue_line("markers", "smoke: Smoke tests - basic functionality checks")
    config.addinivalue_line("markers", "edge_case: Edge case tests - boundary conditions")
    config.addinivalue_line("markers", "system: System tests - full lifecycle behavior")


@pytest.fixture
def postgres_migrations_dir():
    """Migrations shipped with the test assets (0001_init, 0002_add_table)."""
    from core.config import config
    from provisioning.migrations import find_migrations_directory

    return find_migrations_directory(
        ASSETS_DIR / 'postgres',
        dir_name=config.provisioning.migrations_dir_name
    )
