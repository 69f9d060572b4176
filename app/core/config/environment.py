"""Environment-aware settings loader."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import ClassVar, Dict, Type

from .settings import Settings


class DevelopmentSettings(Settings):
    """Settings tuned for local development (readable coloured console logs)."""

    environment: str = "development"
    use_json_logs: bool = False
    use_colored_logs: bool = True


class ProductionSettings(Settings):
    """Settings tuned for production (JSON logs for aggregation)."""

    environment: str = "production"


class TestSettings(Settings):
    """Settings tuned for automated tests (no file logs, FCM dry-run)."""

    __test__: ClassVar[bool] = False

    environment: str = "test"

    def model_post_init(self, __context) -> None:
        super().model_post_init(__context)
        object.__setattr__(self, "log_dir", None)
        object.__setattr__(self, "fcm_dry_run", True)


ENVIRONMENTS: Dict[str, Type[Settings]] = {
    "development": DevelopmentSettings,
    "dev": DevelopmentSettings,
    "production": ProductionSettings,
    "prod": ProductionSettings,
    "test": TestSettings,
    "testing": TestSettings,
}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance keyed by APP_ENV to avoid repeated disk/env reads."""
    env = os.getenv("APP_ENV", "production").lower()
    settings_cls = ENVIRONMENTS.get(env, ProductionSettings)
    return settings_cls()
