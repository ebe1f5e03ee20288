"""
Dependency injection.
"""

from notaire.di.container import Container

__all__ = ["Container"]
