# medreport/routes/analysis_routes.py
import logging
import os
import re

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse

from medreport.deps import get_generation_client, get_ocr_client, get_settings, limiter, settings
from medreport.schemas.analysis import AnalyzeRequest, ExtractTextResult
from medreport.services.generation import GenerationClient
from medreport.services.ocr import OCRClient
from medreport.services.report_pipeline import analyze_text, failure_record, process_upload
from medreport.utils.exceptions import OCRError

router = APIRouter(prefix="/api", tags=["analysis"])
logger = logging.getLogger("medreport")

ALLOWED_EXTENSIONS = {".pdf", ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff", ".webp"}


def _sanitize_filename(name: str) -> str:
    name = os.path.basename(name or "file")
    name = re.sub(r"[^A-Za-z0-9_.-]", "_", name)
    return name or "file"


async def _read_upload(file: UploadFile) -> tuple[bytes, str, str]:
    data = await file.read()
    name = _sanitize_filename(file.filename or "file")
    mt = (file.content_type or "").lower()
    ext = os.path.splitext(name)[1].lower()
    if not (mt == "application/pdf" or mt.startswith("image/") or ext in ALLOWED_EXTENSIONS):
        raise HTTPException(status_code=415, detail=f"Unsupported file type: {mt or 'unknown'}")
    return data, name, mt


@router.post("/analyze")
@limiter.limit(settings.analyze_rate_limit)
async def analyze(
    request: Request,
    payload: AnalyzeRequest,
    generator: GenerationClient = Depends(get_generation_client),
):
    """Analyze report text. Always answers with a renderable record except for empty input."""
    text = payload.text or ""
    if not text.strip():
        logger.info({"function": "analyze", "stage": "empty_input"})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "No text provided for analysis"},
        )
    try:
        record = await analyze_text(text, generator)
    except Exception:
        logger.exception("analyze failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=failure_record().to_payload(),
        )
    return record.to_payload()


@router.post("/extract_text", response_model=ExtractTextResult)
@limiter.limit(settings.analyze_rate_limit)
async def extract_text(
    request: Request,
    file: UploadFile = File(...),
    ocr: OCRClient = Depends(get_ocr_client),
):
    data, name, mt = await _read_upload(file)
    # OCRError is turned into a 400 envelope by the app-level handler
    text = await ocr.extract_text(data, name, mt)
    return ExtractTextResult(text=text, filename=name, chars=len(text))


@router.post("/analyze_report")
@limiter.limit(settings.analyze_rate_limit)
async def analyze_report(
    request: Request,
    file: UploadFile = File(...),
    ocr: OCRClient = Depends(get_ocr_client),
    generator: GenerationClient = Depends(get_generation_client),
):
    """OCR an uploaded image/PDF and analyze the recognised text."""
    data, name, mt = await _read_upload(file)
    try:
        record = await process_upload(data, name, mt, ocr, generator)
    except OCRError:
        raise
    except Exception:
        logger.exception("analyze_report failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=failure_record().to_payload(),
        )
    return record.to_payload()


@router.get("/health")
def health(request: Request):
    cfg = get_settings(request)
    return {
        "status": "ok",
        "generation_configured": cfg.generation_configured,
        "ocr_configured": cfg.ocr_configured,
    }
