"""End-to-end report analysis: OCR, generation, parsing, and the fallbacks between them."""
from __future__ import annotations

import logging
from typing import Protocol

from medreport.schemas.analysis import AnalysisRecord, Finding
from medreport.services.lab_values import extract_lab_values
from medreport.services.response_parser import (
    DEFAULT_RECOMMENDATIONS,
    DEFAULT_SUMMARY,
    PLACEHOLDER_FINDING,
    parse_model_response,
)
from medreport.utils.exceptions import GenerationError

logger = logging.getLogger("medreport")

FAILURE_ERROR = "Failed to analyze medical report"
FAILURE_SUMMARY = (
    "We could not automatically analyze this report. "
    "Please consult with your healthcare provider for interpretation."
)
FAILURE_RECOMMENDATIONS = (
    "Please share this report with your healthcare provider for proper interpretation",
    "Regular health check-ups are recommended",
)


class TextGenerator(Protocol):
    async def generate(self, text: str) -> str: ...


class TextExtractor(Protocol):
    async def extract_text(self, data: bytes, filename: str, content_type: str = "") -> str: ...


def fallback_record(text: str) -> AnalysisRecord:
    """Regex-only record for when the generation service is down or unusable."""
    findings = extract_lab_values(text) or [PLACEHOLDER_FINDING]
    return AnalysisRecord(
        summary=DEFAULT_SUMMARY,
        keyFindings=findings,
        recommendations=list(DEFAULT_RECOMMENDATIONS),
    )


def failure_record(error: str = FAILURE_ERROR) -> AnalysisRecord:
    """Payload for a request that failed outright; still renderable as a record."""
    return AnalysisRecord(
        summary=FAILURE_SUMMARY,
        keyFindings=[Finding(name="Analysis Status", value="Failed to process", status="warning")],
        recommendations=list(FAILURE_RECOMMENDATIONS),
        error=error,
    )


async def analyze_text(text: str, generator: TextGenerator) -> AnalysisRecord:
    """Run generation and parsing over report text.

    Generation failures never escape: they fall back to the regex extractor
    run against ``text`` itself.
    """
    logger.info({"function": "analyze_text", "stage": "generation_start", "chars": len(text or "")})
    try:
        generated = await generator.generate(text)
    except GenerationError as exc:
        logger.warning({
            "function": "analyze_text",
            "stage": "generation_failed",
            "reason": exc.message,
            "status_code": exc.status_code,
        })
        return fallback_record(text)

    if not (generated or "").strip():
        logger.info({"function": "analyze_text", "stage": "generation_empty"})
        return fallback_record(text)

    record = parse_model_response(generated, text)
    logger.info({
        "function": "analyze_text",
        "stage": "parsed",
        "findings": len(record.key_findings),
        "recommendations": len(record.recommendations),
    })
    return record


async def process_upload(
    data: bytes,
    filename: str,
    content_type: str,
    ocr: TextExtractor,
    generator: TextGenerator,
) -> AnalysisRecord:
    """OCR the upload, then analyze the text.

    OCRError propagates to the caller: without text there is nothing to fall
    back on. A blank scan never reaches the generation service.
    """
    text = await ocr.extract_text(data, filename, content_type)
    if not (text or "").strip():
        logger.info({"function": "process_upload", "stage": "ocr_blank", "filename": filename})
        return fallback_record(text)
    return await analyze_text(text, generator)


__all__ = [
    "FAILURE_ERROR",
    "TextGenerator",
    "TextExtractor",
    "fallback_record",
    "failure_record",
    "analyze_text",
    "process_upload",
]
