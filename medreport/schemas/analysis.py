# medreport/schemas/analysis.py
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Status = Literal["normal", "warning", "abnormal"]


class Finding(BaseModel):
    """One extracted lab metric."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Human-readable test label, e.g. 'Blood Glucose'.")
    value: str = Field(..., description="Display value including units, e.g. '145 mg/dL'.")
    status: Status = Field(..., description="One of 'normal', 'warning', 'abnormal'.")


class AnalysisRecord(BaseModel):
    """Structured summary/findings/recommendations for a single report."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: str = Field(..., min_length=1)
    key_findings: List[Finding] = Field(..., alias="keyFindings", min_length=1)
    recommendations: List[str] = Field(..., min_length=1)
    error: Optional[str] = Field(None, description="Set only when analysis failed upstream of parsing.")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AnalyzeRequest(BaseModel):
    text: Optional[str] = Field(None, max_length=50000, description="Raw report text to analyze.")


class ExtractTextResult(BaseModel):
    text: str
    filename: str
    chars: int
