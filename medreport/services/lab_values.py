"""Direct regex extraction of well-known lab values from raw report text.

Used as the secondary source of findings when the model reply has none and
as the only source when the generation service is unavailable.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from medreport.schemas.analysis import Finding
from medreport.services.reference_ranges import LabRule, compare_to_limits, get_rules

NUM = r"\d+(?:\.\d+)?"
SEPARATOR = r"(?:\s*[:=]\s*|\s+)"
UNIT = r"(?:\s*(?P<unit>mg\s*/\s*dl|mmol\s*/\s*l|mm\s*hg|%))?"
PRESSURE_VALUE = r"(?P<value>\d{2,3})\s*/\s*(?P<diastolic>\d{2,3})"


@dataclass(frozen=True)
class LabPattern:
    rule: LabRule
    regex: re.Pattern
    # Words that, directly before a match, mean the text belongs to another
    # rule's longer alias ("HDL" before "cholesterol").
    shadow_prefixes: Tuple[str, ...] = ()


def _alias_regex(alias: str) -> str:
    return r"[\s-]+".join(re.escape(word) for word in alias.split())


def _build_regex(rule: LabRule) -> re.Pattern:
    aliases = sorted(rule.aliases, key=len, reverse=True)
    names = "|".join(_alias_regex(a) for a in aliases)
    value = PRESSURE_VALUE if rule.direction == "pressure" else rf"(?P<value>{NUM})"
    # "Non-HDL Cholesterol" is a different measurement
    return re.compile(rf"(?<!non-)(?<!non )\b(?:{names})\b{SEPARATOR}{value}{UNIT}", re.IGNORECASE)


def _shadow_prefixes(rule: LabRule, rules: Sequence[LabRule]) -> Tuple[str, ...]:
    prefixes = []
    for other in rules:
        if other is rule:
            continue
        for phrase in other.aliases:
            for alias in rule.aliases:
                if phrase != alias and phrase.endswith(" " + alias):
                    prefixes.append(phrase[: -len(alias)].strip())
    return tuple(sorted(set(prefixes)))


def build_patterns(rules: Sequence[LabRule]) -> Tuple[LabPattern, ...]:
    return tuple(
        LabPattern(rule=rule, regex=_build_regex(rule), shadow_prefixes=_shadow_prefixes(rule, rules))
        for rule in rules
    )


@lru_cache(maxsize=1)
def get_patterns() -> Tuple[LabPattern, ...]:
    return build_patterns(get_rules())


@lru_cache(maxsize=32)
def _prefix_regex(prefix: str) -> re.Pattern:
    # "hdl" right before the match, joined by spaces or hyphens
    words = r"[\s-]+".join(re.escape(word) for word in prefix.split())
    return re.compile(rf"(?<![a-z0-9]){words}[\s-]*$", re.IGNORECASE)


def _is_shadowed(text: str, start: int, prefixes: Tuple[str, ...]) -> bool:
    preceding = text[:start]
    return any(_prefix_regex(prefix).search(preceding) for prefix in prefixes)


def normalize_unit_text(unit: str) -> str:
    cleaned = re.sub(r"\s+", "", unit or "").lower()
    return {"mg/dl": "mg/dL", "mmol/l": "mmol/L", "mmhg": "mmHg", "%": "%"}.get(cleaned, cleaned)


def _finding_from_match(pattern: LabPattern, match: re.Match) -> Finding:
    rule = pattern.rule
    raw_value = match.group("value")
    if rule.direction == "pressure":
        diastolic = match.group("diastolic")
        status = compare_to_limits(rule, float(raw_value), float(diastolic))
        return Finding(name=rule.name, value=f"{raw_value}/{diastolic} {rule.unit}", status=status)

    unit = normalize_unit_text(match.group("unit") or "")
    display_unit = unit if unit == "mmol/L" and rule.mmol_factor else rule.unit
    value = rule.to_mg_dl(float(raw_value), unit)
    return Finding(name=rule.name, value=f"{raw_value} {display_unit}", status=compare_to_limits(rule, value))


def match_rule(text: str, pattern: LabPattern) -> Optional[Finding]:
    """First unshadowed match of a single rule, or None."""
    for match in pattern.regex.finditer(text):
        if _is_shadowed(text, match.start(), pattern.shadow_prefixes):
            continue
        return _finding_from_match(pattern, match)
    return None


def extract_lab_values(text: str, patterns: Optional[Sequence[LabPattern]] = None) -> List[Finding]:
    """Return at most one finding per known lab, in table order.

    An empty list means nothing recognisable was found; callers supply their
    own placeholder.
    """
    if not text:
        return []
    findings: List[Finding] = []
    for pattern in patterns if patterns is not None else get_patterns():
        finding = match_rule(text, pattern)
        if finding is not None:
            findings.append(finding)
    return findings


__all__ = ["LabPattern", "build_patterns", "get_patterns", "extract_lab_values", "match_rule", "normalize_unit_text"]
