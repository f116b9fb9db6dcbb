"""
Runtime configuration read from the environment.

A `.env` file in the working directory is loaded first (python-dotenv), so
local development only needs `OPENAI_API_KEY=...` in that file. Variables
already set in the process environment win over the file.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from engine.constants import DEFAULT_FAST_MODEL, DEFAULT_MODEL, DEFAULT_MODEL_PLY_THRESHOLD


@dataclass(frozen=True)
class Settings:
    """
    Fields:
        openai_api_key:      Secret for the OpenAI API. None when unset; the
                             app still starts, health reports "error" and
                             moves fall back to random.
        model:               Model for the fixed policy and for late positions.
        fast_model:          Model for early positions under the ply policy.
        model_ply_threshold: Ply count at which the ply policy switches from
                             fast_model to model.
        app_env:             "development" adds stack traces to 500 responses.
        log_level:           Root logging level name.
    """

    openai_api_key: str | None = None
    model: str = DEFAULT_MODEL
    fast_model: str = DEFAULT_FAST_MODEL
    model_ply_threshold: int = DEFAULT_MODEL_PLY_THRESHOLD
    app_env: str = "production"
    log_level: str = "INFO"

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
            fast_model=os.getenv("OPENAI_FAST_MODEL", DEFAULT_FAST_MODEL),
            model_ply_threshold=int(os.getenv("MODEL_PLY_THRESHOLD", DEFAULT_MODEL_PLY_THRESHOLD)),
            app_env=os.getenv("APP_ENV", "production"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process, read once."""
    return Settings.from_env()
