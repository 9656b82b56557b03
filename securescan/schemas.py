from pydantic import BaseModel, Field
from typing import Dict, Optional, List
from datetime import datetime

from securescan.core.models import Email

# ==========================================
# INPUT MODELS
# ==========================================

class ScanRequest(BaseModel):
    """Fields as typed into the compose view. Every field may be empty."""
    from_addr: Optional[str] = Field(default="", alias="from")
    reply_to: Optional[str] = ""
    subject: Optional[str] = ""
    body: Optional[str] = ""
    # Verbatim pasted message (headers included); defaults to the body
    raw_text: Optional[str] = None
    parse_headers: bool = False

    model_config = {"populate_by_name": True}

    def to_email(self) -> Email:
        return Email(
            from_addr=self.from_addr or "",
            reply_to=self.reply_to or "",
            subject=self.subject or "",
            body=self.body or "",
        )

class HeaderRequest(BaseModel):
    raw_headers: str = ""
    from_addr: Optional[str] = Field(default="", alias="from")

    model_config = {"populate_by_name": True}

# ==========================================
# RESPONSE MODELS
# ==========================================

class IndicatorResponse(BaseModel):
    name: str
    description: str
    weight: int

class KeywordCategory(BaseModel):
    category: str
    matches: List[str] = []

class UrlStatusResponse(BaseModel):
    url: str
    threat: str
    reason: str
    flagged: bool

class HeaderFlag(BaseModel):
    name: str
    reason: str
    weight: int

class HeaderFlagsResponse(BaseModel):
    flags: List[HeaderFlag] = []
    total_weight: int = 0

class HeaderFieldsResponse(BaseModel):
    parsed: bool = False
    originating_ip: str = ""
    received_from: str = ""
    dkim: str = ""
    spf: str = ""
    return_path: str = ""

class ScanEmailInfo(BaseModel):
    from_addr: str = Field(default="", alias="from")
    reply_to: str = ""
    subject: str = ""

    model_config = {"populate_by_name": True}

class ScanResponse(BaseModel):
    """Schema for sending a completed scan to the frontend."""
    email: ScanEmailInfo
    risk_score: int
    risk_level: str
    confidence_percent: int
    confidence_label: str
    summary: str
    indicators: List[IndicatorResponse] = []
    matched_keywords: List[KeywordCategory] = []
    headers: HeaderFieldsResponse
    urls: List[UrlStatusResponse] = []
    header_flags: Optional[HeaderFlagsResponse] = None
    breakdown: Dict[str, int] = {}
    processing_time: float = 0.0
    analysis_date: datetime
    scan_id: Optional[int] = None

class ScanEntryResponse(BaseModel):
    id: int
    score: int
    level: str
    label: str
    timestamp: datetime

class StatisticsResponse(BaseModel):
    total_scans: int
    safe: int
    suspicious: int
    malicious: int
    average_score: float
    recent_scans: List[ScanEntryResponse] = []
