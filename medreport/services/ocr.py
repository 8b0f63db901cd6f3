"""Client for the remote OCR service (OCR.space compatible)."""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from medreport.utils.exceptions import OCRError

logger = logging.getLogger("medreport")

DEFAULT_MAX_FILE_BYTES = 1024 * 1024


def _error_message(payload: dict) -> str:
    message = payload.get("ErrorMessage")
    if isinstance(message, list):
        message = ", ".join(str(m) for m in message if m)
    return str(message or "OCR processing failed")


def parse_ocr_payload(payload: Any) -> str:
    """Pull the parsed text out of an OCR response, raising OCRError on failure."""
    if not isinstance(payload, dict):
        raise OCRError("OCR service returned an unexpected response")
    if payload.get("IsErroredOnProcessing") or payload.get("OCRExitCode") != 1:
        raise OCRError(_error_message(payload))
    results = payload.get("ParsedResults")
    if not isinstance(results, list) or not results:
        raise OCRError("OCR service returned no parsed text")
    pages = [r.get("ParsedText") or "" for r in results if isinstance(r, dict)]
    if not pages:
        raise OCRError("OCR service returned no parsed text")
    return "\n".join(pages)


class OCRClient:
    """Submit an uploaded image/PDF and return the recognised text.

    One ``httpx.AsyncClient`` is opened per call and closed before returning.
    ``transport`` lets tests swap in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        language: str = "eng",
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.language = language
        self.max_file_bytes = max_file_bytes
        self.timeout_s = timeout_s
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    def check_size(self, data: bytes) -> None:
        if not data:
            raise OCRError("Empty file")
        if len(data) > self.max_file_bytes:
            raise OCRError(
                f"File size exceeds the maximum permissible file size limit of {self.max_file_bytes // 1024} KB",
                status_code=413,
            )

    async def extract_text(self, data: bytes, filename: str, content_type: str = "") -> str:
        self.check_size(data)
        if not self.configured:
            raise OCRError("OCR service not configured")

        files = {"file": (filename or "upload", data, content_type or "application/octet-stream")}
        form = {"apikey": self.api_key, "language": self.language, "isOverlayRequired": "false"}

        logger.info({"function": "ocr", "stage": "ocr_start", "bytes": len(data), "content_type": content_type})
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.post(self.api_url, data=form, files=files)
                r.raise_for_status()
                payload = r.json()
        except httpx.HTTPStatusError as exc:
            raise OCRError(f"OCR API error: {exc.response.status_code}", status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise OCRError(f"OCR request failed: {exc}") from exc
        except ValueError as exc:
            raise OCRError("OCR service returned invalid JSON") from exc

        text = parse_ocr_payload(payload)
        logger.info({"function": "ocr", "stage": "ocr_done", "chars": len(text)})
        return text


__all__ = ["OCRClient", "parse_ocr_payload", "DEFAULT_MAX_FILE_BYTES"]
