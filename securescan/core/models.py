"""
Value objects produced and consumed by the detection engine.

Email, PhishingIndicator and UrlStatus are immutable. AnalysisResult is the
per-scan accumulator the risk scorer fills in; its risk level is derived from
the score and recomputed whenever the score is assigned.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from securescan.core import rules


class RiskLevel(Enum):
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"

    @property
    def label(self) -> str:
        return _RISK_LABELS[self][0]

    @property
    def color(self) -> str:
        return _RISK_LABELS[self][1]

    @classmethod
    def from_score(cls, score: int) -> "RiskLevel":
        if score < rules.SAFE_BELOW:
            return cls.SAFE
        if score < rules.MALICIOUS_FROM:
            return cls.SUSPICIOUS
        return cls.MALICIOUS


_RISK_LABELS = {
    RiskLevel.SAFE: ("Safe", "#4CAF50"),
    RiskLevel.SUSPICIOUS: ("Suspicious", "#FF9800"),
    RiskLevel.MALICIOUS: ("Malicious", "#F44336"),
}


class Threat(Enum):
    CLEAN = "clean"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"

    @property
    def label(self) -> str:
        return _THREAT_LABELS[self]


_THREAT_LABELS = {
    Threat.CLEAN: "Clean",
    Threat.SUSPICIOUS: "Suspicious",
    Threat.MALICIOUS: "Malicious",
}


@dataclass(frozen=True)
class Email:
    """A message as typed or imported by the analyst. Missing fields are empty strings."""
    from_addr: str = ""
    reply_to: str = ""
    subject: str = ""
    body: str = ""

    def __post_init__(self):
        # None from loose callers becomes ""
        for name in ("from_addr", "reply_to", "subject", "body"):
            if getattr(self, name) is None:
                object.__setattr__(self, name, "")


@dataclass(frozen=True)
class PhishingIndicator:
    name: str
    description: str
    weight: int

    def to_dict(self) -> Dict:
        return {"name": self.name, "description": self.description, "weight": self.weight}


@dataclass(frozen=True)
class UrlStatus:
    url: str
    threat: Threat
    reason: str

    @property
    def flagged(self) -> bool:
        return self.threat != Threat.CLEAN

    def to_dict(self) -> Dict:
        return {
            "url": self.url,
            "threat": self.threat.label,
            "reason": self.reason,
            "flagged": self.flagged,
        }


@dataclass
class SuspicionReport:
    """Header flags in detection order."""
    names: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)
    weights: List[int] = field(default_factory=list)

    def add_flag(self, name: str, reason: str, weight: int) -> None:
        self.names.append(name)
        self.reasons.append(reason)
        self.weights.append(weight)

    @property
    def has_flags(self) -> bool:
        return bool(self.names)

    @property
    def total_weight(self) -> int:
        return sum(self.weights)

    def flags(self) -> List[Tuple[str, str, int]]:
        return list(zip(self.names, self.reasons, self.weights))

    def to_dict(self) -> Dict:
        return {
            "flags": [
                {"name": n, "reason": r, "weight": w} for n, r, w in self.flags()
            ],
            "total_weight": self.total_weight,
        }


@dataclass(frozen=True)
class HeaderFields:
    originating_ip: str = ""
    received_from: str = ""
    dkim: str = ""
    spf: str = ""
    return_path: str = ""
    parsed: bool = False


class AnalysisResult:
    """
    Mutable accumulator for one scan.

    Assigning ``risk_score`` always re-derives ``risk_level`` so the two
    can never disagree.
    """

    def __init__(self, email: Email):
        self.email = email
        self.indicators: List[PhishingIndicator] = []
        self.matched_keywords: List[Tuple[str, List[str]]] = []
        self.confidence_percent = 0
        self.summary = ""
        self.analysis_date = datetime.now()

        self.originating_ip = ""
        self.received_from = ""
        self.dkim = ""
        self.spf = ""
        self.return_path = ""
        self.header_parsed = False

        self._risk_score = 0
        self._risk_level = RiskLevel.SAFE

    @property
    def risk_score(self) -> int:
        return self._risk_score

    @risk_score.setter
    def risk_score(self, score: int):
        self._risk_score = score
        self._risk_level = RiskLevel.from_score(score)

    @property
    def risk_level(self) -> RiskLevel:
        return self._risk_level

    @property
    def confidence_label(self) -> str:
        c = self.confidence_percent
        if c >= 85:
            return "Very High"
        if c >= 65:
            return "High"
        if c >= 45:
            return "Moderate"
        if c >= 25:
            return "Low"
        return "Very Low"

    def keywords_for(self, category: str) -> Optional[List[str]]:
        for name, words in self.matched_keywords:
            if name == category:
                return words
        return None

    @property
    def all_matched_keywords(self) -> List[str]:
        return [word for _, words in self.matched_keywords for word in words]

    def apply_header_fields(self, fields: HeaderFields) -> None:
        self.originating_ip = fields.originating_ip
        self.received_from = fields.received_from
        self.dkim = fields.dkim
        self.spf = fields.spf
        self.return_path = fields.return_path
        self.header_parsed = fields.parsed

    def to_dict(self) -> Dict:
        return {
            "email": {
                "from": self.email.from_addr,
                "reply_to": self.email.reply_to,
                "subject": self.email.subject,
            },
            "risk_score": self.risk_score,
            "risk_level": self.risk_level.label,
            "confidence_percent": self.confidence_percent,
            "confidence_label": self.confidence_label,
            "summary": self.summary,
            "indicators": [i.to_dict() for i in self.indicators],
            "matched_keywords": [
                {"category": name, "matches": list(words)}
                for name, words in self.matched_keywords
            ],
            "headers": {
                "parsed": self.header_parsed,
                "originating_ip": self.originating_ip,
                "received_from": self.received_from,
                "dkim": self.dkim,
                "spf": self.spf,
                "return_path": self.return_path,
            },
            "analysis_date": self.analysis_date.isoformat(),
        }

    def __repr__(self):
        return (
            f"AnalysisResult(score={self.risk_score}, level={self.risk_level.label}, "
            f"confidence={self.confidence_percent}%, indicators={len(self.indicators)})"
        )
