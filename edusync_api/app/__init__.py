"""
Application package initializer.

The API is a thin service in front of a hosted database and auth
provider.  Each domain (events, announcements, profiles, auth) has a
service under ``services`` and a router under ``api/v1/endpoints``;
shared plumbing (configuration, logging, backend clients, request
dependencies) lives in ``core``.
"""

from .main import app  # noqa: F401
