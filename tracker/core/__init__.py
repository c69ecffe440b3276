"""
Core utilities shared across the tracker.

This package hosts:
- configuration helpers (env vars, storage paths, backend URL)
- the error hierarchy raised by repositories and services
- password hashing and small id/timestamp helpers
"""
