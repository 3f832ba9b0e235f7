"""Root conftest: settings the package reads at import time.

``command_outbox.config`` builds its settings on import, so the database
credentials must exist before any test module is collected. Values already
present in the environment win.
"""
from __future__ import annotations

import os

_TEST_ENV = {
    "POSTGRES_USER": "outbox",
    "POSTGRES_PASSWORD": "outbox",
    "POSTGRES_DB": "outbox_test",
    "REDIS_URL": "redis://localhost:6379/15",
    "LOG_LEVEL": "DEBUG",
}

for key, value in _TEST_ENV.items():
    os.environ.setdefault(key, value)
