# config.py
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters sent with every Gemini call."""
    temperature: float = 1.0
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 8192
    response_mime_type: str = "text/plain"

    def as_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "max_output_tokens": self.max_output_tokens,
            "response_mime_type": self.response_mime_type,
        }


@dataclass(frozen=True)
class Settings:
    database_url: str
    google_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def load_settings() -> Settings:
    database_url = _env("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set in .env")

    defaults = GenerationConfig()
    generation = GenerationConfig(
        temperature=float(_env("GEMINI_TEMPERATURE", str(defaults.temperature))),
        top_p=float(_env("GEMINI_TOP_P", str(defaults.top_p))),
        top_k=int(_env("GEMINI_TOP_K", str(defaults.top_k))),
        max_output_tokens=int(_env("GEMINI_MAX_OUTPUT_TOKENS", str(defaults.max_output_tokens))),
        response_mime_type=_env("GEMINI_RESPONSE_MIME_TYPE", defaults.response_mime_type),
    )

    origins = [o.strip() for o in _env("CORS_ORIGINS", "*").split(",") if o.strip()]

    return Settings(
        database_url=database_url,
        google_api_key=_env("GOOGLE_API_KEY"),
        gemini_model=_env("GEMINI_MODEL", "gemini-2.0-flash"),
        generation=generation,
        jwt_secret=_env("JWT_SECRET"),
        jwt_algorithm=_env("JWT_ALGORITHM", "HS256"),
        cors_origins=origins or ["*"],
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
