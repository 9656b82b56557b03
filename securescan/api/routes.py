import logging
from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import List
from datetime import datetime

from securescan.config import settings
from securescan.core.eml_loader import EmlLoader, EmlParseError
from securescan.database import get_db
from securescan.schemas import (
    HeaderRequest, ScanEntryResponse, ScanRequest, ScanResponse, StatisticsResponse,
)
from securescan.services.analysis_service import AnalysisService, ScanOutcome
from securescan.services.report_service import ReportRenderError, ReportRenderer, get_renderer
from securescan.services.scan_session import ScanSession

logger = logging.getLogger(__name__)

router = APIRouter()

RECENT_SCANS = 10

# Stateless; safe to share between requests
analysis_service = AnalysisService()
eml_loader = EmlLoader()


def get_scan_session(db: Session = Depends(get_db)) -> ScanSession:
    return ScanSession(db)


def get_report_renderer() -> ReportRenderer:
    return get_renderer(settings.REPORT_FORMAT)


def _respond(outcome: ScanOutcome, session: ScanSession) -> ScanResponse:
    entry = session.record(outcome.result)
    return ScanResponse(**outcome.to_dict(), scan_id=entry.id)

# ============================================================================
# ANALYSIS ENDPOINTS
# ============================================================================

@router.post("/analyze", response_model=ScanResponse)
def analyze_email(request: ScanRequest, session: ScanSession = Depends(get_scan_session)):
    """Analyze an email entered field by field"""
    try:
        outcome = analysis_service.analyze(
            request.to_email(),
            raw_text=request.raw_text,
            parse_headers=request.parse_headers,
        )
        return _respond(outcome, session)
    except Exception as e:
        logger.error(f"Error in /analyze: {e}")
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")


@router.post("/analyze/eml", response_model=ScanResponse)
async def analyze_file(
    file: UploadFile = File(...),
    session: ScanSession = Depends(get_scan_session)
):
    """Analyze an uploaded .eml or .txt file"""
    raw = await file.read()
    if len(raw) > settings.MAX_EMAIL_SIZE_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail="File exceeds maximum email size")

    # Parsing, scoring and the DB commit are blocking; keep them off the event loop
    return await run_in_threadpool(_scan_upload, raw, file.filename or "", session)


def _scan_upload(raw: bytes, filename: str, session: ScanSession) -> ScanResponse:
    try:
        loaded = eml_loader.load(raw, filename)
    except EmlParseError as e:
        logger.warning(f"Rejected upload {filename}: {e}")
        raise HTTPException(status_code=400, detail=f"Could not read email: {str(e)}")

    try:
        outcome = analysis_service.analyze(
            loaded.email,
            raw_text=loaded.raw_text,
            parse_headers=loaded.is_eml,
        )
        return _respond(outcome, session)
    except Exception as e:
        logger.error(f"Error in /analyze/eml: {e}")
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")


@router.post("/headers", response_model=dict)
def inspect_headers(request: HeaderRequest):
    """Parse raw headers and report forensic flags without scoring content"""
    outcome = analysis_service.analyze_headers(request.raw_headers, request.from_addr or "")
    result = outcome.result.to_dict()
    return {
        "headers": result["headers"],
        "header_flags": outcome.header_report.to_dict(),
        "risk_score": result["risk_score"],
        "risk_level": result["risk_level"],
    }


@router.post("/report")
def export_report(request: ScanRequest, renderer: ReportRenderer = Depends(get_report_renderer)):
    """Render a scan report (PDF or plain text, per configuration)"""
    outcome = analysis_service.analyze(
        request.to_email(),
        raw_text=request.raw_text,
        parse_headers=request.parse_headers,
    )
    try:
        content = renderer.render(outcome.result)
    except ReportRenderError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return Response(
        content=content,
        media_type=renderer.media_type,
        headers={"Content-Disposition": f'attachment; filename="{renderer.filename()}"'},
    )

# ============================================================================
# SCAN HISTORY / TREND ENDPOINTS
# ============================================================================

@router.get("/scans", response_model=List[ScanEntryResponse])
def list_scans(limit: int = None, session: ScanSession = Depends(get_scan_session)):
    return [e.to_dict() for e in session.entries(limit)]


@router.delete("/scans")
def clear_scans(session: ScanSession = Depends(get_scan_session)):
    deleted = session.clear()
    return {"status": "success", "deleted": deleted}


@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics(session: ScanSession = Depends(get_scan_session)):
    stats = session.statistics()
    recent = session.entries(limit=RECENT_SCANS)
    return {**stats, "recent_scans": [e.to_dict() for e in recent]}


@router.get("/health")
def health_check():
    return {"status": "healthy", "timestamp": datetime.now(), "service": settings.APP_NAME}
