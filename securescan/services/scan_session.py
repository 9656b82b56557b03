import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from securescan.core.models import AnalysisResult
from securescan.models import ScanRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanEntry:
    id: int
    score: int
    risk_label: str
    timestamp: datetime

    @property
    def label(self) -> str:
        return "#" + self.timestamp.strftime("%H:%M:%S")

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "score": self.score,
            "level": self.risk_label,
            "label": self.label,
            "timestamp": self.timestamp,
        }


class ScanSession:
    """
    Log of completed scans used by the trend chart.

    The host application creates one per request from its database session
    and hands it to whatever records scans; the detection engine never sees it.
    """

    def __init__(self, db: Session):
        self.db = db

    def record(self, result: AnalysisResult) -> ScanEntry:
        record = ScanRecord(
            sender=result.email.from_addr,
            subject=result.email.subject,
            risk_score=result.risk_score,
            risk_level=result.risk_level.label,
            confidence_percent=result.confidence_percent,
            indicator_count=len(result.indicators),
            scanned_at=result.analysis_date,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"Recorded scan #{record.id}: {record.risk_score} ({record.risk_level})")
        return self._to_entry(record)

    def entries(self, limit: int = None) -> List[ScanEntry]:
        """Entries in chronological order; with a limit, only the newest ones"""
        if not limit:
            query = self.db.query(ScanRecord).order_by(ScanRecord.scanned_at, ScanRecord.id)
            return [self._to_entry(r) for r in query.all()]

        newest = (
            self.db.query(ScanRecord)
            .order_by(ScanRecord.scanned_at.desc(), ScanRecord.id.desc())
            .limit(limit)
            .all()
        )
        return [self._to_entry(r) for r in reversed(newest)]

    def size(self) -> int:
        return self.db.query(func.count(ScanRecord.id)).scalar() or 0

    def clear(self) -> int:
        deleted = self.db.query(ScanRecord).delete()
        self.db.commit()
        logger.info(f"Cleared {deleted} scan records")
        return deleted

    def statistics(self) -> Dict:
        total = self.size()
        by_level = dict(
            self.db.query(ScanRecord.risk_level, func.count(ScanRecord.id))
            .group_by(ScanRecord.risk_level)
            .all()
        )
        avg_score = self.db.query(func.avg(ScanRecord.risk_score)).scalar() or 0
        return {
            "total_scans": total,
            "safe": by_level.get("Safe", 0),
            "suspicious": by_level.get("Suspicious", 0),
            "malicious": by_level.get("Malicious", 0),
            "average_score": round(float(avg_score), 2),
        }

    @staticmethod
    def _to_entry(record: ScanRecord) -> ScanEntry:
        return ScanEntry(
            id=record.id,
            score=record.risk_score,
            risk_label=record.risk_level,
            timestamp=record.scanned_at,
        )
