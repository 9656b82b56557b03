from sqlalchemy import Column, Integer, String, DateTime, Text
from datetime import datetime
from securescan.database import Base

class ScanRecord(Base):
    """One completed scan in the session / trend log. Append-only."""
    __tablename__ = "scans"

    id = Column(Integer, primary_key=True, index=True)

    # Email Metadata
    sender = Column(String(255), index=True)
    subject = Column(Text)

    # Verdict
    risk_score = Column(Integer, default=0)
    risk_level = Column(String(20), index=True)
    confidence_percent = Column(Integer, default=0)
    indicator_count = Column(Integer, default=0)

    scanned_at = Column(DateTime, default=datetime.now, index=True)
