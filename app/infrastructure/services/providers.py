"""
Application-scoped providers.

The engine, the logging setup and ``main`` all read configuration through
``get_settings`` so a process sees exactly one Settings instance.
"""

from functools import lru_cache

from infrastructure.configuration import Settings


@lru_cache
def get_settings() -> Settings:
    """
    Get the process-wide Settings instance.

    Usage:
        from infrastructure.services import get_settings
        batch_size = get_settings().delivery.batch_size

    Tests that need different values construct ``Settings(...)`` and pass it
    to ``build_engine``, or call ``get_settings.cache_clear()`` after
    patching the environment.

    Returns:
        Settings: Cached settings loaded from the environment and ``.env``.
    """
    return Settings()
