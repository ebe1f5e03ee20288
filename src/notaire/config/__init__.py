"""
Notaire configuration.
"""

from notaire.config.settings import (
    ListenerConfig,
    NotaireConfig,
    get_settings,
    load_config,
    reset_settings,
)

__all__ = [
    "ListenerConfig",
    "NotaireConfig",
    "get_settings",
    "load_config",
    "reset_settings",
]
