import pytest

from securescan.core.models import Email
from securescan.services import report_service
from securescan.services.report_service import (
    PlainTextRenderer, ReportRenderError, StructuredDocumentRenderer, get_renderer,
)


HEADERS_RAW = (
    "Return-Path: <bounce@evil.example>\n"
    "Authentication-Results: mx.example.com; spf=fail\n"
)


def test_text_report_for_safe_email(analysis_service, safe_email):
    result = analysis_service.analyze(safe_email).result
    text = PlainTextRenderer().render(result).decode("utf-8")

    assert "Subject:   Meeting Reminder" in text
    assert "RISK LEVEL : SAFE" in text
    assert "RISK SCORE : 0 / 100" in text
    assert "CONFIDENCE : 30% (Low)" in text
    assert "INDICATORS (0 found):" in text
    assert "  No phishing indicators detected." in text
    assert "MATCHED KEYWORDS" not in text
    assert "HEADERS:" not in text


def test_text_report_lists_indicators(analysis_service, phishing_email):
    result = analysis_service.analyze(phishing_email).result
    text = PlainTextRenderer().render(result).decode("utf-8")

    assert "RISK LEVEL : MALICIOUS" in text
    assert "INDICATORS (4 found):" in text
    assert "  [+30pt] Suspicious Link: Contains: http:// (unencrypted), bit.ly" in text
    assert "MATCHED KEYWORDS: http:// (unencrypted), bit.ly, urgent," in text
    assert result.summary in text


def test_text_report_includes_parsed_headers(analysis_service):
    email = Email(from_addr="a@bank.example", body="hello")
    result = analysis_service.analyze(email, raw_text=HEADERS_RAW, parse_headers=True).result
    text = PlainTextRenderer().render(result).decode("utf-8")

    assert "HEADERS:" in text
    assert "Return-Path     bounce@evil.example" in text
    assert "SPF             FAIL" in text


def test_pdf_report(analysis_service, phishing_email):
    result = analysis_service.analyze(phishing_email).result
    renderer = StructuredDocumentRenderer()
    content = renderer.render(result)

    assert content.startswith(b"%PDF")
    assert renderer.media_type == "application/pdf"
    assert renderer.filename() == "SecureScan_Report.pdf"


def test_pdf_report_escapes_markup(analysis_service):
    email = Email(subject="<b>Invoice</b> & more", body="Dear customer, <script>")
    result = analysis_service.analyze(email).result
    assert StructuredDocumentRenderer().render(result).startswith(b"%PDF")


def test_pdf_failure_raises_render_error(monkeypatch, analysis_service, safe_email):
    class BrokenDocument:
        def __init__(self, *args, **kwargs):
            pass

        def build(self, story):
            raise RuntimeError("disk full")

    monkeypatch.setattr(report_service, "SimpleDocTemplate", BrokenDocument)
    result = analysis_service.analyze(safe_email).result

    with pytest.raises(ReportRenderError, match="disk full"):
        StructuredDocumentRenderer().render(result)


def test_get_renderer_uses_configured_format():
    # the test environment sets REPORT_FORMAT=text
    assert isinstance(get_renderer(), PlainTextRenderer)
    assert isinstance(get_renderer("PDF"), StructuredDocumentRenderer)


def test_get_renderer_unknown_format():
    with pytest.raises(ValueError, match="docx"):
        get_renderer("docx")


@pytest.mark.parametrize("email,hexval", [
    (Email(body="see you at lunch"), "0x4caf50"),
    (Email(subject="URGENT: Verify Account",
           body="Act now! Verify immediately at http://bit.ly/fake-login"), "0xf44336"),
])
def test_pdf_verdict_uses_level_color(analysis_service, email, hexval):
    result = analysis_service.analyze(email).result
    assert StructuredDocumentRenderer.risk_color(result).hexval() == hexval
