from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from medreport.config import Settings, load_settings
from medreport.services.generation import GenerationClient
from medreport.services.ocr import OCRClient

settings = load_settings()
limiter = Limiter(key_func=get_remote_address, default_limits=[])


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", settings)


def get_ocr_client(request: Request) -> OCRClient:
    """Build an OCR client for this request from the app settings."""
    cfg = get_settings(request)
    return OCRClient(
        api_url=cfg.ocr_api_url,
        api_key=cfg.ocr_api_key,
        language=cfg.ocr_language,
        max_file_bytes=cfg.ocr_max_file_kb * 1024,
        timeout_s=cfg.ocr_timeout_s,
    )


def get_generation_client(request: Request) -> GenerationClient:
    cfg = get_settings(request)
    return GenerationClient(
        api_url=cfg.hf_api_url,
        api_token=cfg.hf_api_token,
        max_new_tokens=cfg.hf_max_new_tokens,
        temperature=cfg.hf_temperature,
        top_p=cfg.hf_top_p,
        timeout_s=cfg.generation_timeout_s,
    )
