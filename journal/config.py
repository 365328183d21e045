# journal/config.py

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once from the environment."""
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com/v1"
    openai_timeout: float = 60.0
    openai_temperature: float = 0.7
    openai_max_tokens: int = 1200

    @property
    def remote_insights_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            raise RuntimeError("JWT_SECRET is not set. Please set it in your environment.")

        return cls(
            jwt_secret=jwt_secret,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            jwt_audience=os.getenv("JWT_AUDIENCE") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", cls.openai_model),
            openai_base_url=os.getenv("OPENAI_BASE_URL", cls.openai_base_url).rstrip("/"),
            openai_timeout=float(os.getenv("OPENAI_TIMEOUT", cls.openai_timeout)),
        )


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency; tests override it through app.dependency_overrides."""
    return Settings.from_env()
