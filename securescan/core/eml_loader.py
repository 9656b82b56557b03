import re
import logging
from dataclasses import dataclass
from email import policy
from email.parser import BytesParser
from email.utils import parseaddr

from bs4 import BeautifulSoup

from securescan.core.models import Email

logger = logging.getLogger(__name__)


class EmlParseError(Exception):
    """Raised when uploaded bytes cannot be read as a message at all"""


@dataclass(frozen=True)
class LoadedMessage:
    """An imported message ready for scanning.

    raw_text is the header block followed by the decoded body text; it is what
    the URL and header analyzers read.
    """
    email: Email
    raw_text: str
    is_eml: bool


class EmlLoader:
    """
    Turns uploaded .eml / .txt files into an Email plus its raw text.

    Plain text files become a body-only Email with a placeholder subject,
    the same way a pasted file scan works in the UI.
    """

    FILE_SCAN_SUBJECT = "[File Scan]"

    def __init__(self):
        self.header_split_pattern = re.compile(r'\r?\n\r?\n')

    def load(self, raw: bytes, filename: str = "") -> LoadedMessage:
        if filename.lower().endswith(".eml") or self._looks_like_eml(raw):
            return self.load_eml(raw)
        return self.load_text(raw)

    def load_text(self, raw: bytes) -> LoadedMessage:
        text = self._decode(raw)
        email = Email(from_addr="", reply_to="", subject=self.FILE_SCAN_SUBJECT, body=text)
        return LoadedMessage(email=email, raw_text=text, is_eml=False)

    def load_eml(self, raw: bytes) -> LoadedMessage:
        """
        Parse raw .eml bytes.

        Raises:
            EmlParseError: the bytes are empty or not a message
        """
        if not raw or not raw.strip():
            raise EmlParseError("Empty message")

        try:
            msg = BytesParser(policy=policy.default).parsebytes(raw)
        except Exception as e:
            logger.error(f"Failed to parse email: {e}")
            raise EmlParseError(str(e)) from e

        if not msg.keys():
            raise EmlParseError("No headers found")

        header_text = self.header_split_pattern.split(self._decode(raw), maxsplit=1)[0]
        body = self._get_body(msg)

        email = Email(
            from_addr=self._address(msg, "from"),
            reply_to=self._address(msg, "reply-to"),
            subject=self._header(msg, "subject"),
            body=body,
        )
        logger.info(f"Loaded .eml from {email.from_addr or 'unknown sender'}")
        return LoadedMessage(
            email=email,
            raw_text=f"{header_text}\n\n{body}",
            is_eml=True,
        )

    # ------------------------------------------------------------------
    # Body extraction
    # ------------------------------------------------------------------

    def _get_body(self, msg) -> str:
        """Plain text and HTML parts joined, attachments skipped"""
        body_parts = []

        parts = msg.walk() if msg.is_multipart() else [msg]
        for part in parts:
            if part.is_multipart():
                continue
            if part.get_content_disposition() == "attachment":
                continue

            content_type = part.get_content_type()
            try:
                if content_type == "text/plain":
                    body_parts.append(part.get_content())
                elif content_type == "text/html":
                    body_parts.append(self._extract_text_from_html(part.get_content()))
            except Exception as e:
                logger.warning(f"Error extracting body part ({content_type}): {e}")

        return "\n".join(body_parts)

    def _extract_text_from_html(self, html: str) -> str:
        """Visible text of an HTML part, with link targets kept inline"""
        soup = BeautifulSoup(html, "lxml")

        for tag in soup.find_all("a"):
            href = tag.get("href")
            if href:
                tag.append(f" {href} ")

        for tag in soup(["script", "style"]):
            tag.decompose()

        text = soup.get_text(separator=" ")
        return re.sub(r"\s+", " ", text).strip()

    # ------------------------------------------------------------------
    # Header helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _header(msg, name: str) -> str:
        try:
            value = msg.get(name)
        except Exception as e:
            logger.warning(f"Unreadable {name} header: {e}")
            return ""
        return str(value) if value is not None else ""

    def _address(self, msg, name: str) -> str:
        return parseaddr(self._header(msg, name))[1]

    @staticmethod
    def _decode(raw: bytes) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return raw.decode("latin-1")

    @staticmethod
    def _looks_like_eml(raw: bytes) -> bool:
        head = raw[:2048].decode("ascii", errors="ignore")
        return bool(re.search(r'^(?:Received|From|Return-Path|Message-ID):', head, re.MULTILINE | re.IGNORECASE))
