"""
Pydantic schema definitions for API payloads.

Each domain (events, announcements, profiles, auth, etc.) defines its
own Pydantic models for request and response bodies.  Backend rows are
validated into these models at the service boundary so handlers never
pass raw dictionaries around.
"""
