"""
Shared utilities for the notaire services.
"""
