import re
import logging
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from securescan.core import rules
from securescan.core.models import Threat, UrlStatus

logger = logging.getLogger(__name__)


class UrlAnalyzer:
    """
    Extracts URLs from free text and classifies them with local heuristics.

    No network lookups are made. Each URL is checked against an ordered rule
    list and the first rule that fires decides the verdict:
    - Unencrypted HTTP
    - Known URL shorteners
    - Raw IPv4 hosts
    - Excessive subdomains
    - Brand names inside non-official hosts
    - Phishing keywords anywhere in the URL
    """

    def __init__(self):
        self.url_pattern = re.compile(
            r'\b((?:https?://|www\.)'
            r'[-a-zA-Z0-9+&@#/%?=~_|!:,.;]*'
            r'[-a-zA-Z0-9+&@#/%=~_|])',
            re.IGNORECASE
        )

        self.ipv4_host_pattern = re.compile(r'^\d{1,3}(?:\.\d{1,3}){3}$')

        # Characters RFC 3986 never allows unescaped
        self.illegal_chars = re.compile(r'[\s|<>"{}\\^`]')

    def extract_urls(self, text: Optional[str]) -> List[str]:
        """Unique URLs in first-seen order. Duplicates are exact string matches."""
        if not text or not text.strip():
            return []

        urls = []
        for match in self.url_pattern.finditer(text):
            url = match.group(1)
            if url not in urls:
                urls.append(url)
        return urls

    def check_urls(self, urls: List[str]) -> Dict[str, UrlStatus]:
        """Classify every URL, keeping input order"""
        return {url: self.check_url(url) for url in urls}

    def check_url(self, url: str) -> UrlStatus:
        lower = url.lower()
        try:
            host = self._parse_host(url)

            # 1. Unencrypted HTTP
            if lower.startswith("http://"):
                return UrlStatus(url, Threat.SUSPICIOUS,
                                 "Uses unencrypted HTTP, credentials can be intercepted")

            # 2. Known URL shortener
            for shortener in rules.SHORTENERS:
                if host == shortener or host.endswith("." + shortener):
                    return UrlStatus(url, Threat.SUSPICIOUS,
                                     f"Shortened URL ({shortener}) hides the true destination")

            # 3. Raw IP address instead of a domain name
            if self.ipv4_host_pattern.match(host):
                return UrlStatus(url, Threat.SUSPICIOUS,
                                 "URL uses a raw IP address instead of a domain name")

            # 4. Excessive subdomains
            if len(host.split(".")) > 4:
                return UrlStatus(url, Threat.SUSPICIOUS,
                                 f"Excessive subdomains ({host}), a common spoofing technique")

            # 5. Brand impersonation
            for brand in rules.URL_BRANDS:
                official = brand + ".com"
                if brand in host and host != official and not host.endswith("." + official):
                    return UrlStatus(url, Threat.SUSPICIOUS,
                                     f"Domain contains '{brand}' but is not the official site, "
                                     "possible brand spoofing")

            # 6. Phishing keywords anywhere in the URL
            if any(kw in lower for kw in rules.URL_PHISHING_KEYWORDS):
                return UrlStatus(url, Threat.SUSPICIOUS,
                                 "URL path contains phishing keywords (login/verify/confirm)")

            return UrlStatus(url, Threat.CLEAN, "No threats detected")

        except ValueError as e:
            logger.debug(f"Unparseable URL {url!r}: {e}")
            return UrlStatus(url, Threat.SUSPICIOUS, "Malformed URL, could not be parsed")

    def _parse_host(self, url: str) -> str:
        """
        Lowercased host of a URL. Bare 'www.' links are parsed as http.
        Falls back to the whole URL when no host can be found.

        Raises:
            ValueError: URL cannot be parsed
        """
        if self.illegal_chars.search(url):
            raise ValueError("illegal character in URL")

        target = "http://" + url if url.lower().startswith("www.") else url
        parts = urlsplit(target)
        _ = parts.port  # raises ValueError on a bad port
        host = parts.hostname
        return (host or url).lower()
