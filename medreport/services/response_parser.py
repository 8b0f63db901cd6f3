"""Turn a free-text model reply into an AnalysisRecord.

The model is asked to answer in three sections::

    SUMMARY: ...
    KEY FINDINGS: - Glucose: 90 mg/dL - Normal
    RECOMMENDATIONS: 1. ...

Replies are often loosely formatted, so every section has a fallback and the
returned record is always complete.
"""
from __future__ import annotations

import re
from typing import List, Optional

from medreport.schemas.analysis import AnalysisRecord, Finding
from medreport.services.lab_values import extract_lab_values
from medreport.services.status import classify_status

SUMMARY_MARKER = "SUMMARY:"
FINDINGS_MARKER = "KEY FINDINGS:"
RECOMMENDATIONS_MARKER = "RECOMMENDATIONS:"

DEFAULT_SUMMARY = "Medical report processed. Please consult a healthcare professional for interpretation."
DEFAULT_RECOMMENDATIONS = (
    "Please consult with a healthcare professional for interpretation of these results",
    "Regular check-ups are recommended for monitoring your health",
)
PLACEHOLDER_FINDING = Finding(name="Text Analysis", value="Report processed", status="normal")

MIN_RECOMMENDATION_CHARS = 10

SUMMARY_RE = re.compile(r"SUMMARY:(.*?)(?=KEY FINDINGS:|RECOMMENDATIONS:|$)", re.DOTALL)
FINDINGS_RE = re.compile(r"KEY FINDINGS:(.*?)(?=RECOMMENDATIONS:|$)", re.DOTALL)
RECOMMENDATIONS_RE = re.compile(r"RECOMMENDATIONS:(.*)$", re.DOTALL)

# "- Blood Pressure: 140/90 mmHg - Elevated" or "2. LDL: 170 mg/dL - High".
# The status must start with a letter, so numeric ranges such as "4.0-5.5"
# stay inside the value.
FINDING_LINE_RE = re.compile(
    r"(?:^|(?<=\s))(?:[•*\-]|\d+[.)](?!\d))?\s*"
    r"(?P<name>[^:\n•*]+?)\s*:\s*"
    r"(?P<value>[^\n]+?)\s*[-–]\s*"
    r"(?P<status>[A-Za-z]+)"
)

# Prose before a spaced dash ("noted - Glucose") is not part of the name.
NAME_LEAD_RE = re.compile(r"^.*\s[-–]\s+")

# Bullets, numbered markers ("1.", "2)") and line breaks.
RECOMMENDATION_SPLIT_RE = re.compile(r"[•*]|(?:^|\s)-\s|\b\d+[.)](?!\d)|\n")


def _section(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text or "")
    return match.group(1).strip() if match else ""


def extract_summary(generated_text: str) -> str:
    return _section(SUMMARY_RE, generated_text) or DEFAULT_SUMMARY


def extract_findings(section_text: str) -> List[Finding]:
    findings: List[Finding] = []
    for match in FINDING_LINE_RE.finditer(section_text or ""):
        name = NAME_LEAD_RE.sub("", match.group("name")).strip(" -\t")
        value = match.group("value").strip()
        if not name or not value:
            continue
        status = classify_status(match.group("status").lower().strip())
        findings.append(Finding(name=name, value=value, status=status))
    return findings


def extract_recommendations(section_text: str) -> List[str]:
    fragments = RECOMMENDATION_SPLIT_RE.split(section_text or "")
    return [frag.strip() for frag in fragments if frag and len(frag.strip()) > MIN_RECOMMENDATION_CHARS]


def parse_model_response(generated_text: str, source_text: Optional[str] = None) -> AnalysisRecord:
    """Build a complete record from the model reply.

    When the findings section yields nothing, the lab values are read from
    ``source_text`` (the original report, not the reply); when that also
    fails a single placeholder finding is used.
    """
    summary = extract_summary(generated_text)

    findings = extract_findings(_section(FINDINGS_RE, generated_text))
    if not findings:
        findings = extract_lab_values(source_text or "")
    if not findings:
        findings = [PLACEHOLDER_FINDING]

    recommendations = extract_recommendations(_section(RECOMMENDATIONS_RE, generated_text))
    if not recommendations:
        recommendations = list(DEFAULT_RECOMMENDATIONS)

    return AnalysisRecord(summary=summary, keyFindings=findings, recommendations=recommendations)


__all__ = [
    "DEFAULT_SUMMARY",
    "DEFAULT_RECOMMENDATIONS",
    "PLACEHOLDER_FINDING",
    "extract_summary",
    "extract_findings",
    "extract_recommendations",
    "parse_model_response",
]
