"""
Shared test configuration for LeakWatch.

Environment variables are set before any leakwatch.* import so the cached
settings pick them up.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "unit-test-jwt-secret-must-be-at-least-32-chars")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.pop("REDIS_URL", None)
for _name in (
    "EMAILJS_SERVICE_ID",
    "EMAILJS_TEMPLATE_ID",
    "EMAILJS_PUBLIC_KEY",
    "EMAILJS_PRIVATE_KEY",
):
    os.environ.pop(_name, None)

from leakwatch.config.settings import get_settings  # noqa: E402

get_settings.cache_clear()
