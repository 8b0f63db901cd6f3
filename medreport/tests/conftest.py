import json
import os
from typing import Callable, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

# Keep tests offline and clear of the per-minute limit before the app is imported
os.environ.setdefault("ANALYZE_RATE_LIMIT", "1000/minute")
os.environ["HF_API_TOKEN"] = ""
os.environ["HUGGINGFACE_API_KEY"] = ""
os.environ["OCR_API_KEY"] = ""

from medreport.app import app
from medreport.deps import get_generation_client, get_ocr_client, limiter
from medreport.utils.exceptions import GenerationError, OCRError


SAMPLE_REPORT = (
    "Patient: Jane Doe\n"
    "Blood Glucose: 145 mg/dL\n"
    "Total Cholesterol: 210 mg/dL\n"
    "HDL Cholesterol: 55 mg/dL\n"
    "Blood Pressure: 150/95 mmHg\n"
)

SAMPLE_REPLY = (
    "SUMMARY: Elevated glucose and blood pressure; cholesterol is borderline.\n"
    "KEY FINDINGS:\n"
    "- Blood Glucose: 145 mg/dL - High\n"
    "- Total Cholesterol: 210 mg/dL - Borderline\n"
    "- HDL Cholesterol: 55 mg/dL - Normal\n"
    "RECOMMENDATIONS:\n"
    "1. Repeat a fasting glucose test within two weeks\n"
    "2. Monitor blood pressure at home every morning\n"
)


class FakeGenerator:
    """Stands in for GenerationClient; records the texts it was asked about."""

    def __init__(self, reply: str = SAMPLE_REPLY, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[str] = []

    async def generate(self, text: str) -> str:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeOCR:
    def __init__(self, text: str = SAMPLE_REPORT, error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[tuple] = []

    async def extract_text(self, data: bytes, filename: str, content_type: str = "") -> str:
        self.calls.append((data, filename, content_type))
        if self.error is not None:
            raise self.error
        return self.text


def json_transport(status_code: int, payload, seen: Optional[list] = None) -> httpx.MockTransport:
    """MockTransport answering every request with ``payload`` as JSON."""
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, content=json.dumps(payload), headers={"Content-Type": "application/json"})
    return httpx.MockTransport(handler)


def raising_transport(exc_factory: Callable[[httpx.Request], Exception]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_factory(request)
    return httpx.MockTransport(handler)


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    limiter.reset()
    yield


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def fake_generator():
    gen = FakeGenerator()
    app.dependency_overrides[get_generation_client] = lambda: gen
    return gen


@pytest.fixture
def failing_generator():
    gen = FakeGenerator(error=GenerationError("Generation service returned status 500", status_code=500))
    app.dependency_overrides[get_generation_client] = lambda: gen
    return gen


@pytest.fixture
def fake_ocr():
    ocr = FakeOCR()
    app.dependency_overrides[get_ocr_client] = lambda: ocr
    return ocr


@pytest.fixture
def failing_ocr():
    ocr = FakeOCR(error=OCRError("Unable to recognize the file"))
    app.dependency_overrides[get_ocr_client] = lambda: ocr
    return ocr
