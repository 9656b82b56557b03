import re
import logging
from typing import List, Iterable

from securescan.core import rules
from securescan.core.models import AnalysisResult, Email, PhishingIndicator
from securescan.core.risk_scorer import RiskScorer

logger = logging.getLogger(__name__)


class ContentAnalyzer:
    """
    Scans the subject and body of an email for phishing language.

    Nine independent checks run over the text. Each one is either silent or
    contributes exactly one indicator plus the list of phrases it matched,
    which the UI highlights per category.
    """

    def __init__(self, scorer: RiskScorer = None):
        self.scorer = scorer or RiskScorer()
        self.weights = rules.WEIGHTS

    def analyze(self, email: Email) -> AnalysisResult:
        """
        Build the base result for an email from its text alone.

        Args:
            email: The message to scan

        Returns:
            AnalysisResult with score, indicators, matched keywords,
            confidence and summary filled in
        """
        indicators: List[PhishingIndicator] = []
        matched = []

        body = email.body or ""
        subject = email.subject or ""
        lower = body.lower()
        full_text = f"{subject} {body}"

        # ===== 1. SUSPICIOUS / SHORTENED LINKS =====
        link_matches = []
        if "http://" in lower:
            link_matches.append("http:// (unencrypted)")
        link_matches.extend(s for s in rules.SHORTENERS if s in lower)
        if link_matches:
            matched.append(("Suspicious Links", link_matches))
            indicators.append(PhishingIndicator(
                "Suspicious Link",
                "Contains: " + ", ".join(link_matches),
                self.weights["suspicious_link"],
            ))

        # ===== 2. URGENCY / FEAR LANGUAGE =====
        urgency = self._find_matches(full_text.lower(), rules.URGENCY_KEYWORDS)
        if urgency:
            matched.append(("Urgency Language", urgency))
            preview = ", ".join(urgency[:4])
            more = f" +{len(urgency) - 4} more" if len(urgency) > 4 else ""
            bonus = min(len(urgency) * self.weights["urgency_per_match"],
                        self.weights["urgency_bonus_cap"])
            indicators.append(PhishingIndicator(
                "Urgency Language",
                f'Matched: "{preview}"{more}',
                self.weights["urgency_base"] + bonus,
            ))

        # ===== 3. CREDENTIAL HARVESTING =====
        credentials = self._find_matches(lower, rules.CREDENTIAL_KEYWORDS)
        if credentials:
            matched.append(("Credential Harvest", credentials))
            indicators.append(PhishingIndicator(
                "Credential Harvesting",
                "Requests sensitive data: " + ", ".join(credentials[:3]),
                self.weights["credential_harvest"],
            ))

        # ===== 4. SENDER / REPLY-TO MISMATCH =====
        mismatch = self._sender_mismatch(email.from_addr or "", email.reply_to or "")
        if mismatch:
            matched.append(("Sender Mismatch", [mismatch]))
            indicators.append(PhishingIndicator(
                "Sender / Reply-To Mismatch",
                f"From: {email.from_addr}  |  Reply-To: {email.reply_to}",
                self.weights["sender_mismatch"],
            ))

        # ===== 5. ALL CAPS SUBJECT =====
        if self._is_shouting(subject):
            matched.append(("ALL CAPS Subject", [subject]))
            indicators.append(PhishingIndicator(
                "ALL CAPS Subject Line",
                "Subject is predominantly uppercase, a common social engineering tactic",
                self.weights["all_caps_subject"],
            ))

        # ===== 6. HOMOGLYPH SPOOFING =====
        if self.normalize_homoglyphs(full_text) != full_text:
            glyphs = self.find_homoglyphs(full_text)
            if glyphs:
                matched.append(("Homoglyphs", glyphs))
                indicators.append(PhishingIndicator(
                    "Homoglyph / Unicode Spoofing",
                    "Contains lookalike characters: " + " ".join(glyphs),
                    self.weights["homoglyph"],
                ))

        # ===== 7. BRAND LOOKALIKE DOMAINS =====
        lookalikes = self._find_lookalikes(full_text)
        if lookalikes:
            matched.append(("Lookalike Domains", lookalikes))
            indicators.append(PhishingIndicator(
                "Brand Lookalike Domain",
                "Possible brand impersonation: " + ", ".join(lookalikes),
                self.weights["lookalike_domain"],
            ))

        # ===== 8. EXCESSIVE PUNCTUATION =====
        exclamations = full_text.count("!")
        if exclamations >= 3:
            matched.append(("Excessive Punctuation", [f"{exclamations} exclamation marks"]))
            indicators.append(PhishingIndicator(
                "Excessive Punctuation",
                f"{exclamations} exclamation marks detected, typical of spam/scam content",
                self.weights["excessive_punctuation"],
            ))

        # ===== 9. GENERIC GREETING =====
        greetings = self._find_matches(lower, rules.GENERIC_GREETINGS)
        if greetings:
            matched.append(("Generic Greeting", greetings))
            indicators.append(PhishingIndicator(
                "Generic / Impersonal Greeting",
                f'Uses non-personalised greeting: "{greetings[0]}"; '
                "legitimate services usually address you by name",
                self.weights["generic_greeting"],
            ))

        score = sum(i.weight for i in indicators)

        result = AnalysisResult(email)
        result.indicators = indicators
        result.matched_keywords = matched
        result.risk_score = self.scorer.clamp_score(score)
        self.scorer.finalize(result)

        logger.debug(f"Content scan: {len(indicators)} indicators, raw score {score}")
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _find_matches(text: str, keywords: Iterable[str]) -> List[str]:
        """Keywords contained in text, in table order, without duplicates"""
        found = []
        for kw in keywords:
            if kw in text and kw not in found:
                found.append(kw)
        return found

    @staticmethod
    def normalize_homoglyphs(text: str) -> str:
        return "".join(rules.HOMOGLYPHS.get(c, c) for c in text)

    @staticmethod
    def find_homoglyphs(text: str) -> List[str]:
        found = []
        for c in text:
            if c in rules.HOMOGLYPHS:
                entry = f"'{c}'→'{rules.HOMOGLYPHS[c]}'"
                if entry not in found:
                    found.append(entry)
        return found

    @staticmethod
    def _find_lookalikes(text: str) -> List[str]:
        found = []
        for pattern in rules.LOOKALIKE_PATTERNS:
            for m in pattern.finditer(text):
                hit = m.group().strip()
                if hit not in found:
                    found.append(hit)
        return found

    @staticmethod
    def _is_shouting(subject: str) -> bool:
        if len(subject) <= 6:
            return False
        letters = re.sub(r"[^a-zA-Z]", "", subject)
        if not letters:
            return False
        upper = sum(1 for c in letters if c.isupper())
        return upper / len(letters) > 0.7

    def _sender_mismatch(self, from_addr: str, reply_to: str) -> str:
        """Returns 'from → reply-to' when the two addresses sit on different domains"""
        if not from_addr.strip() or not reply_to.strip():
            return ""
        if from_addr.lower() == reply_to.lower():
            return ""
        from_domain = self.extract_domain(from_addr)
        reply_domain = self.extract_domain(reply_to)
        if from_domain and reply_domain and from_domain != reply_domain:
            return f"{from_addr} → {reply_to}"
        return ""

    @staticmethod
    def extract_domain(address: str) -> str:
        """Domain after the last '@', lowercased"""
        at = address.rfind("@")
        if at < 0:
            return ""
        return address[at + 1:].lower().strip()
