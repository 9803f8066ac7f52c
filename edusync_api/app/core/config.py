"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
application can start (and the test suite can import it) without a
configured backend.  In a deployment, point ``BACKEND_URL`` and
``BACKEND_ANON_KEY`` at the hosted database/auth project.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "EduSync API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional path of a log file.  When empty only console logging is set up.
    log_file: str = os.getenv("LOG_FILE", "")

    # Base URL of the hosted backend project, e.g.
    # ``https://abcdefgh.supabase.co``.  The REST endpoint lives under
    # ``/rest/v1`` and the auth endpoint under ``/auth/v1``.
    backend_url: str = os.getenv("BACKEND_URL", "http://localhost:54321")

    # Public (anonymous) API key.  Sent as the ``apikey`` header on every
    # request and as the bearer token when no user is signed in.
    backend_anon_key: str = os.getenv("BACKEND_ANON_KEY", "")

    # Timeout in seconds for backend requests.
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "15"))

    # Capacity used when a new event does not specify one.
    default_max_registrations: int = int(os.getenv("DEFAULT_MAX_REGISTRATIONS", "50"))

    # Number of per-viewer event feeds kept in memory.  The least
    # recently used feed is dropped beyond this.
    max_event_feeds: int = int(os.getenv("MAX_EVENT_FEEDS", "1000"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables should
# be set before importing this module.
settings = Settings()
