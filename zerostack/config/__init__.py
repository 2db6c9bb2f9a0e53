"""Configuration module for the ZeroStack SDK."""
from .settings import ClientConfig, load_settings, derive_ws_url

__all__ = ["ClientConfig", "load_settings", "derive_ws_url"]
