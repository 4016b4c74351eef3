"""Factories wiring the shipping domain to its storage.

Views call these instead of building repositories themselves, so tests can
monkeypatch a single symbol to swap the option store or the session store.
"""

from .config import ShippingConfig, load_shipping_config
from .repository import OptionsRepository, DatabaseSessionStore
from .sessions import ShippingSessionManager, SessionStore


def get_options_repository() -> OptionsRepository:
    return OptionsRepository()


def get_shipping_config() -> ShippingConfig:
    """Load the current runtime shipping configuration."""
    return load_shipping_config(get_options_repository())


def get_session_store() -> SessionStore:
    return DatabaseSessionStore()


def get_session_manager(config: ShippingConfig) -> ShippingSessionManager:
    """Return a session manager using the window length from ``config``."""
    return ShippingSessionManager(get_session_store(), config.session_duration)
