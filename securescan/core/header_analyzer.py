import re
import logging
from typing import Optional

from securescan.core import rules
from securescan.core.models import HeaderFields, SuspicionReport

logger = logging.getLogger(__name__)


class HeaderAnalyzer:
    """
    Best-effort forensic parsing of raw email headers.

    Works on the text exactly as copied from a mail client's "show original"
    view. Nothing is decoded or unfolded beyond what the patterns need, and a
    header that cannot be found simply leaves its field empty.

    Extracted fields:
    - X-Originating-IP / X-Sender-IP / X-Source-IP
    - First 'Received: from' hop (plus the first IPv4 address near it)
    - DKIM-Signature signing domain and algorithm
    - SPF verdict from Authentication-Results / Received-SPF
    - Return-Path address
    """

    def __init__(self):
        self.orig_ip_pattern = re.compile(
            r'(?:X-Originating-IP|X-Sender-IP|X-Source-IP):\s*\[?([\d.a-fA-F:]+)',
            re.IGNORECASE
        )
        self.received_pattern = re.compile(r'Received:\s+from\s+(\S+)', re.IGNORECASE)

        # A folded header runs until the next line that does not start with whitespace
        self.dkim_pattern = re.compile(
            r'DKIM-Signature:\s*(.*?)(?=\r?\n\S|\Z)',
            re.IGNORECASE | re.DOTALL
        )
        self.dkim_domain_pattern = re.compile(r'd=([\w.-]+)', re.IGNORECASE)
        self.dkim_algo_pattern = re.compile(r'a=([\w-]+)', re.IGNORECASE)

        self.spf_pattern = re.compile(
            r'(?:Authentication-Results|Received-SPF):[^\n]*?(pass|fail|softfail|neutral|none)',
            re.IGNORECASE
        )
        self.return_path_pattern = re.compile(
            r'Return-Path:\s*<?(.*?)>?\s*$',
            re.IGNORECASE | re.MULTILINE
        )
        self.from_header_pattern = re.compile(r'^From:\s*(.*?)$', re.IGNORECASE | re.MULTILINE)
        self.display_name_pattern = re.compile(r'"?([^"<@]+?)"?\s*<([^>]+)>')
        self.ipv4_pattern = re.compile(r'\b(\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})\b')

    # ==========================================
    # PARSING
    # ==========================================

    def parse(self, raw_text: Optional[str]) -> HeaderFields:
        """
        Extract forensic fields from raw header text.

        Returns empty fields with parsed=False for blank input. Once any
        text is given, a missing DKIM-Signature is reported as "Not present".
        """
        if not raw_text or not raw_text.strip():
            return HeaderFields()

        found = False
        originating_ip = received_from = spf = return_path = ""

        m = self.orig_ip_pattern.search(raw_text)
        if m:
            originating_ip = m.group(1).strip()
            found = True

        m = self.received_pattern.search(raw_text)
        if m:
            hop = m.group(1).strip()
            window = raw_text[m.start():min(m.end() + 120, len(raw_text))]
            ip_match = self.ipv4_pattern.search(window)
            received_from = hop + (f"  [{ip_match.group(1)}]" if ip_match else "")
            found = True

        m = self.dkim_pattern.search(raw_text)
        if m:
            dkim = self._describe_dkim(m.group(1))
            found = True
        else:
            dkim = "Not present"

        m = self.spf_pattern.search(raw_text)
        if m:
            spf = m.group(1).upper()
            found = True

        m = self.return_path_pattern.search(raw_text)
        if m:
            return_path = m.group(1).strip()
            found = True

        logger.debug(f"Header parse found fields: {found}")
        return HeaderFields(
            originating_ip=originating_ip,
            received_from=received_from,
            dkim=dkim,
            spf=spf,
            return_path=return_path,
            parsed=found,
        )

    def _describe_dkim(self, block: str) -> str:
        signature = re.sub(r'\s+', ' ', block).strip()
        domain = self._first_group(self.dkim_domain_pattern, signature)
        algo = self._first_group(self.dkim_algo_pattern, signature)
        if not domain:
            return "Present"
        return f"domain={domain}" + (f" algo={algo}" if algo else "")

    # ==========================================
    # EVALUATION
    # ==========================================

    def evaluate(self, fields: HeaderFields, from_addr: str, raw_text: Optional[str]) -> SuspicionReport:
        """
        Check parsed header fields for spoofing and authentication failures.

        Args:
            fields: Output of parse()
            from_addr: The From address the analyst entered for the message
            raw_text: The raw header text, searched for the From: display name

        Returns:
            SuspicionReport with flags in rule order
        """
        report = SuspicionReport()
        weights = rules.WEIGHTS

        # ===== SPF FAIL / SOFTFAIL =====
        if fields.spf.upper() in ("FAIL", "SOFTFAIL"):
            report.add_flag(
                f"SPF {fields.spf}",
                "Server is not authorised to send on behalf of this domain",
                weights["spf_fail"],
            )

        # ===== NO DKIM =====
        if fields.dkim == "Not present":
            report.add_flag(
                "No DKIM Signature",
                "Email lacks a DKIM digital signature, sender identity cannot be verified",
                weights["no_dkim"],
            )

        # ===== RETURN-PATH MISMATCH =====
        from_addr = from_addr or ""
        if fields.return_path.strip() and from_addr.strip():
            rp_domain = self._address_domain(fields.return_path)
            from_domain = self._address_domain(from_addr)
            if rp_domain and from_domain and rp_domain != from_domain:
                report.add_flag(
                    "Return-Path Domain Mismatch",
                    f"Return-Path domain ({rp_domain}) differs from From domain ({from_domain})",
                    weights["return_path_mismatch"],
                )

        # ===== DISPLAY NAME SPOOFING =====
        brand = self._spoofed_display_brand(raw_text)
        if brand:
            report.add_flag(
                "Display Name Spoofing",
                f"Display name claims to be '{brand}' but email address does not match",
                weights["display_name_spoofing"],
            )

        # ===== PRIVATE ORIGINATING IP =====
        ip = fields.originating_ip
        if ip.strip() and ip.startswith(rules.PRIVATE_IP_PREFIXES):
            report.add_flag(
                "Private Originating IP",
                f"Email originated from private/internal IP: {ip}, may indicate spoofing",
                weights["private_ip"],
            )

        return report

    def _spoofed_display_brand(self, raw_text: Optional[str]) -> str:
        """First trusted brand named in the From: display name but absent from its address"""
        if not raw_text:
            return ""

        from_header = self.from_header_pattern.search(raw_text)
        if not from_header:
            return ""

        display = self.display_name_pattern.search(from_header.group(1))
        if not display:
            return ""

        display_name = display.group(1).strip().lower()
        address = display.group(2).strip().lower()
        for brand in rules.TRUSTED_DISPLAY_BRANDS:
            if brand in display_name and brand not in address:
                return brand
        return ""

    # ==========================================
    # HELPERS
    # ==========================================

    @staticmethod
    def _first_group(pattern, text: str) -> str:
        m = pattern.search(text)
        return m.group(1) if m else ""

    @staticmethod
    def _address_domain(address: str) -> str:
        """Domain after the first '@', lowercased, with stray brackets/quotes removed"""
        at = address.find("@")
        if at < 0:
            return ""
        return re.sub(r'[>"\s]', '', address[at + 1:].strip().lower())
