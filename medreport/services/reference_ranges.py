"""Screening thresholds for the lab values recognised in raw report text."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from medreport.schemas.analysis import Status

CONFIG_PATH = Path(__file__).parent.parent / "config" / "lab_thresholds.yaml"

DIRECTIONS = {"above", "below", "pressure"}


@dataclass(frozen=True)
class LabRule:
    name: str
    unit: str
    aliases: Tuple[str, ...]
    direction: str
    abnormal: Any
    warning: Any
    mmol_factor: Optional[float] = None

    def to_mg_dl(self, value: float, unit: str) -> float:
        if self.mmol_factor and (unit or "").lower() == "mmol/l":
            return value * self.mmol_factor
        return value


def _rule_from_dict(raw: Dict[str, Any]) -> LabRule:
    direction = raw.get("direction", "above")
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown direction {direction!r} for {raw.get('name')!r}")
    aliases = tuple(str(a).lower() for a in raw.get("aliases") or [])
    if not aliases:
        raise ValueError(f"Rule {raw.get('name')!r} has no aliases")
    return LabRule(
        name=raw["name"],
        unit=raw["unit"],
        aliases=aliases,
        direction=direction,
        abnormal=raw["abnormal"],
        warning=raw["warning"],
        mmol_factor=raw.get("mmol_factor"),
    )


def load_rules(path: Path = CONFIG_PATH) -> Tuple[LabRule, ...]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return tuple(_rule_from_dict(item) for item in data.get("labs") or [])


@lru_cache(maxsize=1)
def get_rules() -> Tuple[LabRule, ...]:
    return load_rules()


def compare_to_limits(rule: LabRule, value: float, diastolic: Optional[float] = None) -> Status:
    """Place a value against the rule's limits. Limits themselves are in range."""
    if rule.direction == "pressure":
        systolic = value
        dia = diastolic if diastolic is not None else 0.0
        if systolic > rule.abnormal["systolic"] or dia > rule.abnormal["diastolic"]:
            return "abnormal"
        if systolic > rule.warning["systolic"] or dia > rule.warning["diastolic"]:
            return "warning"
        return "normal"
    if rule.direction == "below":
        if value < rule.abnormal:
            return "abnormal"
        if value < rule.warning:
            return "warning"
        return "normal"
    if value > rule.abnormal:
        return "abnormal"
    if value > rule.warning:
        return "warning"
    return "normal"


__all__ = ["LabRule", "load_rules", "get_rules", "compare_to_limits", "CONFIG_PATH"]
