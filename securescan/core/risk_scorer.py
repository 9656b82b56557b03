import logging
from typing import Dict, Iterable

from securescan.core import rules
from securescan.core.models import (
    AnalysisResult, PhishingIndicator, RiskLevel, SuspicionReport, Threat, UrlStatus,
)

logger = logging.getLogger(__name__)


class RiskScorer:
    def __init__(self):
        """
        Scoring policy shared by every stage of a scan: clamping, level
        thresholds, confidence and the plain-English summary.
        """
        self.url_weights = {
            Threat.MALICIOUS: rules.WEIGHTS['url_malicious'],
            Threat.SUSPICIOUS: rules.WEIGHTS['url_suspicious'],
        }

    # ------------------------------------------------------------------
    # Score / level / confidence
    # ------------------------------------------------------------------

    def clamp_score(self, score: int) -> int:
        return max(0, min(score, rules.MAX_SCORE))

    def calculate_risk_level(self, score: int) -> RiskLevel:
        return RiskLevel.from_score(score)

    @staticmethod
    def calculate_confidence(risk_score: int, indicator_count: int) -> int:
        """
        How sure we are that the score is right.

        Starts from the score, adds a bonus per independent indicator, never
        drops below 30 for low scores (finding nothing is not proof of
        safety) and never claims more than 97.
        """
        conf = risk_score + indicator_count * rules.CONFIDENCE_PER_INDICATOR
        if risk_score < rules.LOW_SCORE_THRESHOLD:
            conf = max(conf, rules.LOW_SCORE_CONFIDENCE_FLOOR)
        return max(0, min(conf, rules.MAX_CONFIDENCE))

    def build_summary(self, result: AnalysisResult) -> str:
        conf = result.confidence_percent
        count = len(result.indicators)

        if count == 0:
            return (
                "No phishing indicators detected. Content appears safe. "
                f"Confidence: {conf}% ({result.confidence_label})"
            )

        # max() keeps the first indicator on ties, matching detection order
        strongest = max(result.indicators, key=lambda i: i.weight).name
        plural = "" if count == 1 else "s"
        return (
            f"{result.risk_level.label} content detected. {count} indicator{plural} found. "
            f"Strongest signal: {strongest}. "
            f"Confidence: {conf}% ({result.confidence_label})."
        )

    def finalize(self, result: AnalysisResult) -> AnalysisResult:
        """Derive confidence and summary from the final score and indicators"""
        result.confidence_percent = self.calculate_confidence(
            result.risk_score, len(result.indicators)
        )
        result.summary = self.build_summary(result)
        return result

    # ------------------------------------------------------------------
    # Merging analyzer output into a result
    # ------------------------------------------------------------------

    def merge_url_statuses(self, result: AnalysisResult, statuses: Iterable[UrlStatus]) -> int:
        """
        Add one 'Suspicious URL' indicator per flagged URL.

        Returns the score added before clamping.
        """
        extra = []
        for status in statuses:
            if not status.flagged:
                continue
            weight = self.url_weights.get(status.threat, rules.WEIGHTS['url_suspicious'])
            extra.append(PhishingIndicator(
                "Suspicious URL",
                f"{self._truncate(status.url, 55)} — {status.reason}",
                weight,
            ))

        if not extra:
            return 0

        added = sum(i.weight for i in extra)
        result.indicators = result.indicators + extra
        result.risk_score = self.clamp_score(result.risk_score + added)
        logger.debug(f"Merged {len(extra)} URL indicators (+{added})")
        return added

    def merge_header_report(self, result: AnalysisResult, report: SuspicionReport) -> int:
        """Add each header flag as an indicator. Returns the score added before clamping."""
        if not report.has_flags:
            return 0

        extra = [PhishingIndicator(name, reason, weight) for name, reason, weight in report.flags()]
        added = report.total_weight
        result.indicators = result.indicators + extra
        result.risk_score = self.clamp_score(result.risk_score + added)
        logger.debug(f"Merged {len(extra)} header indicators (+{added})")
        return added

    def breakdown(self, result: AnalysisResult) -> Dict[str, int]:
        """Weight contributed per indicator name, in first-seen order"""
        totals: Dict[str, int] = {}
        for ind in result.indicators:
            totals[ind.name] = totals.get(ind.name, 0) + ind.weight
        return totals

    @staticmethod
    def _truncate(text: str, limit: int) -> str:
        if len(text) <= limit:
            return text
        return text[:limit - 1] + "…"
