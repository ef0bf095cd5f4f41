# backend/settings/dev.py
"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT SETTINGS
Everything from base, DEBUG on, localhost front end allowed.
Also the settings module used by the test suite.
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, env

DEBUG = True

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1", "testserver"])

CORS_ALLOWED_ORIGINS = env.list(
    "CORS_ALLOWED_ORIGINS", default=["http://localhost:5173"]
)

CSRF_TRUSTED_ORIGINS = env.list(
    "CSRF_TRUSTED_ORIGINS", default=["http://localhost:5173"]
)

CORS_ALLOW_CREDENTIALS = True

# Stock engine chatter is useful locally
LOGGING["loggers"]["inventory"]["level"] = env("LOG_LEVEL", default="DEBUG").upper()
LOGGING["loggers"]["projects"]["level"] = env("LOG_LEVEL", default="DEBUG").upper()
