"""Client for the text-generation service (Hugging Face inference API)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Union

import httpx

from medreport.utils.exceptions import GenerationError

logger = logging.getLogger("medreport")

PROMPT_TEMPLATE = """
You are a medical AI assistant analyzing a patient's medical report.
Extract key health metrics, identify abnormal values, and provide a concise summary.

Medical report: {text}

Format your response as follows:
SUMMARY: [Brief overview of patient health based on the report]
KEY FINDINGS: [List key metrics as "- Name: value unit - status" with status normal/abnormal/warning]
RECOMMENDATIONS: [Provide 2-3 simple recommendations based on the findings]
"""


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(text=(text or "").strip()).strip()


# Known reply shapes. The inference API answers with a list of
# {"generated_text": ...}, some deployments with a bare string or a single
# object carrying "generated_text" or "text".
@dataclass(frozen=True)
class GeneratedList:
    items: List[Any]


@dataclass(frozen=True)
class GeneratedStr:
    text: str


@dataclass(frozen=True)
class GeneratedObject:
    data: dict


@dataclass(frozen=True)
class UnknownShape:
    raw: Any


GenerationPayload = Union[GeneratedList, GeneratedStr, GeneratedObject, UnknownShape]


def classify_payload(payload: Any) -> GenerationPayload:
    if isinstance(payload, str):
        return GeneratedStr(payload)
    if isinstance(payload, list):
        return GeneratedList(payload)
    if isinstance(payload, dict):
        return GeneratedObject(payload)
    return UnknownShape(payload)


def _text_field(obj: Any) -> str:
    if not isinstance(obj, dict):
        return ""
    for key in ("generated_text", "text"):
        value = obj.get(key)
        if isinstance(value, str):
            return value
    return ""


def normalize_payload(payload: Any) -> str:
    """Return the generated text, or "" when the reply carries none."""
    shape = classify_payload(payload)
    if isinstance(shape, GeneratedStr):
        text = shape.text
    elif isinstance(shape, GeneratedList):
        text = _text_field(shape.items[0]) if shape.items else ""
    elif isinstance(shape, GeneratedObject):
        text = _text_field(shape.data)
    else:
        text = ""
    return text.strip()


class GenerationClient:
    """Send a report to the generation service and return the reply text.

    Holds configuration only; each call opens its own HTTP client.
    """

    def __init__(
        self,
        api_url: str,
        api_token: str,
        max_new_tokens: int = 500,
        temperature: float = 0.2,
        top_p: float = 0.95,
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_token = api_token
        self.max_new_tokens = max_new_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.timeout_s = timeout_s
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_token)

    def request_body(self, text: str) -> dict:
        return {
            "inputs": build_prompt(text),
            "parameters": {
                "max_new_tokens": self.max_new_tokens,
                "temperature": self.temperature,
                "top_p": self.top_p,
                "return_full_text": False,
            },
        }

    async def generate(self, text: str) -> str:
        if not self.configured:
            raise GenerationError("generation service not configured")

        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.post(self.api_url, headers=headers, json=self.request_body(text))
                r.raise_for_status()
                payload = r.json()
        except httpx.HTTPStatusError as exc:
            raise GenerationError(
                f"Generation service returned status {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise GenerationError(f"Generation request failed: {exc}") from exc
        except ValueError as exc:
            raise GenerationError("Generation service returned invalid JSON") from exc

        generated = normalize_payload(payload)
        if not generated:
            logger.info({
                "function": "generation",
                "stage": "unexpected_shape",
                "payload_type": type(payload).__name__,
                "keys": sorted(payload)[:10] if isinstance(payload, dict) else None,
            })
        return generated


__all__ = [
    "PROMPT_TEMPLATE",
    "build_prompt",
    "GeneratedList",
    "GeneratedStr",
    "GeneratedObject",
    "UnknownShape",
    "classify_payload",
    "normalize_payload",
    "GenerationClient",
]
