"""Environment-driven settings for the report analyzer."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

PACKAGE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = PACKAGE_DIR / ".env"

DEFAULT_HF_API_URL = "https://api-inference.huggingface.co/models/meta-llama/Meta-Llama-3-8B-Instruct"
DEFAULT_OCR_API_URL = "https://api.ocr.space/parse/image"
DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080"


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or default).strip()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (ValueError, TypeError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (ValueError, TypeError):
        return default


def _env_list(name: str, default: str) -> List[str]:
    raw = _env_str(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    hf_api_url: str = DEFAULT_HF_API_URL
    hf_api_token: str = ""
    hf_max_new_tokens: int = 500
    hf_temperature: float = 0.2
    hf_top_p: float = 0.95
    generation_timeout_s: float = 30.0

    ocr_api_url: str = DEFAULT_OCR_API_URL
    ocr_api_key: str = ""
    ocr_language: str = "eng"
    ocr_max_file_kb: int = 1024
    ocr_timeout_s: float = 30.0

    analyze_rate_limit: str = "30/minute"
    cors_origins: List[str] = field(default_factory=lambda: DEFAULT_CORS_ORIGINS.split(","))
    log_level: str = "INFO"

    @property
    def generation_configured(self) -> bool:
        return bool(self.hf_api_url and self.hf_api_token)

    @property
    def ocr_configured(self) -> bool:
        return bool(self.ocr_api_url and self.ocr_api_key)


def load_settings(env_path: Path | None = ENV_PATH) -> Settings:
    """Read settings from the process environment, after loading ``.env`` if present."""
    if env_path is not None and env_path.exists():
        load_dotenv(env_path, override=False)

    return Settings(
        hf_api_url=_env_str("HF_API_URL", DEFAULT_HF_API_URL),
        hf_api_token=_env_str("HF_API_TOKEN") or _env_str("HUGGINGFACE_API_KEY"),
        hf_max_new_tokens=_env_int("HF_MAX_NEW_TOKENS", 500),
        hf_temperature=_env_float("HF_TEMPERATURE", 0.2),
        hf_top_p=_env_float("HF_TOP_P", 0.95),
        generation_timeout_s=_env_float("GENERATION_TIMEOUT_S", 30.0),
        ocr_api_url=_env_str("OCR_API_URL", DEFAULT_OCR_API_URL),
        ocr_api_key=_env_str("OCR_API_KEY"),
        ocr_language=_env_str("OCR_LANGUAGE", "eng") or "eng",
        ocr_max_file_kb=_env_int("OCR_MAX_FILE_KB", 1024),
        ocr_timeout_s=_env_float("OCR_TIMEOUT_S", 30.0),
        analyze_rate_limit=_env_str("ANALYZE_RATE_LIMIT", "30/minute") or "30/minute",
        cors_origins=_env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
        log_level=_env_str("LOG_LEVEL", "INFO").upper() or "INFO",
    )


__all__ = ["Settings", "load_settings", "ENV_PATH"]
