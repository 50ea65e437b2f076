"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real PostgreSQL server by accident
os.environ.setdefault("DATABASE_URL", "sqlite://")
