"""Shared utilities (logging, audit trail)."""
