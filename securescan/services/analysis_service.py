import time
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from securescan.core.content_analyzer import ContentAnalyzer
from securescan.core.header_analyzer import HeaderAnalyzer
from securescan.core.models import AnalysisResult, Email, SuspicionReport, UrlStatus
from securescan.core.risk_scorer import RiskScorer
from securescan.core.url_analyzer import UrlAnalyzer

logger = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    result: AnalysisResult
    url_statuses: Dict[str, UrlStatus] = field(default_factory=dict)
    header_report: Optional[SuspicionReport] = None
    breakdown: Dict[str, int] = field(default_factory=dict)
    processing_time: float = 0.0

    def to_dict(self) -> Dict:
        return {
            **self.result.to_dict(),
            "urls": [s.to_dict() for s in self.url_statuses.values()],
            "header_flags": self.header_report.to_dict() if self.header_report else None,
            "breakdown": dict(self.breakdown),
            "processing_time": round(self.processing_time, 4),
        }


class AnalysisService:
    """
    Complete scan pipeline: content, then URLs, then (optionally) headers.

    Holds no per-scan state, so one instance can serve concurrent requests.
    """

    def __init__(self, scorer: RiskScorer = None):
        self.scorer = scorer or RiskScorer()
        self.content_analyzer = ContentAnalyzer(self.scorer)
        self.url_analyzer = UrlAnalyzer()
        self.header_analyzer = HeaderAnalyzer()

    def analyze(self, email: Email, raw_text: Optional[str] = None,
                parse_headers: bool = False) -> ScanOutcome:
        """
        Scan an email and merge every analyzer into one result.

        Args:
            email: The message fields
            raw_text: Verbatim text the URL and header analyzers read;
                defaults to the body
            parse_headers: Run header forensics over raw_text

        Returns:
            ScanOutcome with the final result and per-analyzer details
        """
        start_time = time.time()
        if raw_text is None:
            raw_text = email.body or ""

        # 1. Content
        result = self.content_analyzer.analyze(email)

        # 2. URLs
        urls = self.url_analyzer.extract_urls(raw_text)
        url_statuses = self.url_analyzer.check_urls(urls)
        self.scorer.merge_url_statuses(result, url_statuses.values())

        # 3. Headers
        header_report = None
        if parse_headers:
            fields = self.header_analyzer.parse(raw_text)
            result.apply_header_fields(fields)
            header_report = self.header_analyzer.evaluate(fields, email.from_addr, raw_text)
            self.scorer.merge_header_report(result, header_report)

        # 4. Confidence and summary from the merged totals
        self.scorer.finalize(result)

        processing_time = time.time() - start_time
        logger.info(
            f"Scan complete in {processing_time:.3f}s: score {result.risk_score} "
            f"({result.risk_level.label}), {len(result.indicators)} indicators"
        )
        return ScanOutcome(
            result=result,
            url_statuses=url_statuses,
            header_report=header_report,
            breakdown=self.scorer.breakdown(result),
            processing_time=processing_time,
        )

    def analyze_headers(self, raw_text: str, from_addr: str = "") -> ScanOutcome:
        """Header forensics only, for the header inspector view"""
        email = Email(from_addr=from_addr)
        result = AnalysisResult(email)
        fields = self.header_analyzer.parse(raw_text)
        result.apply_header_fields(fields)
        report = self.header_analyzer.evaluate(fields, from_addr, raw_text)
        self.scorer.merge_header_report(result, report)
        self.scorer.finalize(result)
        return ScanOutcome(result=result, header_report=report,
                           breakdown=self.scorer.breakdown(result))
