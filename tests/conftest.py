"""Root pytest configuration.

Test Structure:
    tests/
    ├── folio_auth/            # JWT, bcrypt, opaque token primitives
    ├── folio_config/          # Settings loading
    ├── folio_identity/        # Identity domain tests (users, account lifecycle)
    │   ├── unit/              # Fast, isolated tests (mocks, in-memory store)
    │   └── integration/       # SQLAlchemy store against in-memory SQLite
    ├── integration/api/       # HTTP endpoints through FastAPI's TestClient
    ├── unit/presentation/     # CLI
    └── shared/                # Shared fixtures and utilities
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

from folio_config import clear_settings_cache

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Load .env.dev for tests (same as local development)
CONFIG_DIR = PROJECT_ROOT / "config"
if (CONFIG_DIR / ".env.dev").exists():
    load_dotenv(CONFIG_DIR / ".env.dev")

# Required settings must exist even without a local .env file
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-for-testing-only")
os.environ.setdefault("POSTGRES_PASSWORD", "test-password")


@pytest.fixture(scope="session", autouse=True)
def configure_app_settings():
    """Ensure every test session starts with a fresh settings cache."""
    clear_settings_cache()
    yield
    clear_settings_cache()
