from .settings import Settings, load_settings  # noqa: F401

__all__ = ["Settings", "load_settings"]
