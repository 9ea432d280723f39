import importlib
import os
from types import ModuleType


def get_settings_module() -> str:
    """Settings module for ``APP_ENV``: production, testing, or development (default)."""
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def load_settings() -> ModuleType:
    return importlib.import_module(get_settings_module())
