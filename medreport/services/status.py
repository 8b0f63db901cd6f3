"""Map free-text status words onto the closed normal/warning/abnormal scale."""
from __future__ import annotations

from medreport.schemas.analysis import Status

# Checked in this order; the first category with a hit wins.
STATUS_KEYWORDS = (
    ("abnormal", ("abnormal", "high", "low", "critical", "elevated")),
    ("warning", ("warning", "borderline", "moderate")),
)


def classify_status(token: str | None) -> Status:
    """Classify a status word by substring containment.

    "Borderline High" is abnormal: the abnormal keywords are checked before
    the warning ones.
    """
    lowered = (token or "").strip().lower()
    if not lowered:
        return "normal"
    for status, words in STATUS_KEYWORDS:
        if any(word in lowered for word in words):
            return status  # type: ignore[return-value]
    return "normal"


__all__ = ["classify_status", "STATUS_KEYWORDS"]
