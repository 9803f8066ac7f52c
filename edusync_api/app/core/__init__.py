"""Configuration, logging, backend clients and request dependencies."""
