from .analysis import AnalysisRecord, AnalyzeRequest, ExtractTextResult, Finding, Status  # noqa: F401

__all__ = ["AnalysisRecord", "AnalyzeRequest", "ExtractTextResult", "Finding", "Status"]
