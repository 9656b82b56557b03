"""
Scan report rendering.

Two renderers share one interface: a ReportLab PDF document and a plain-text
fallback. Which one is used is decided by ``settings.REPORT_FORMAT`` when the
renderer is built, never by probing for libraries at run time.
"""

import io
import logging
from abc import ABC, abstractmethod
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from securescan.config import settings
from securescan.core.models import AnalysisResult

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ReportRenderError(Exception):
    """A report could not be produced"""


class ReportRenderer(ABC):
    media_type = "application/octet-stream"
    file_extension = ""

    @abstractmethod
    def render(self, result: AnalysisResult) -> bytes:
        """Render a completed result into document bytes"""

    def filename(self, stem: str = "SecureScan_Report") -> str:
        return f"{stem}{self.file_extension}"


class PlainTextRenderer(ReportRenderer):
    media_type = "text/plain; charset=utf-8"
    file_extension = ".txt"

    def render(self, result: AnalysisResult) -> bytes:
        bar = "=" * 60
        email = result.email
        lines = [
            "SECURESCAN — PHISHING ANALYSIS REPORT",
            bar,
            f"Date:      {result.analysis_date.strftime(DATE_FORMAT)}",
            f"Subject:   {email.subject}",
            f"From:      {email.from_addr}",
            f"Reply-To:  {email.reply_to}",
            bar,
            f"RISK LEVEL : {result.risk_level.label.upper()}",
            f"RISK SCORE : {result.risk_score} / 100",
            f"CONFIDENCE : {result.confidence_percent}% ({result.confidence_label})",
            bar,
            "SUMMARY:",
            result.summary,
            "",
            f"INDICATORS ({len(result.indicators)} found):",
        ]

        if not result.indicators:
            lines.append("  No phishing indicators detected.")
        for ind in result.indicators:
            lines.append(f"  [+{ind.weight}pt] {ind.name}: {ind.description}")

        keywords = result.all_matched_keywords
        if keywords:
            lines.append(f"MATCHED KEYWORDS: {', '.join(keywords)}")

        if result.header_parsed:
            lines.append(bar)
            lines.append("HEADERS:")
            for label, value in _header_rows(result):
                lines.append(f"  {label:<16}{value}")

        lines.append(bar)
        lines.append("SecureScan Phishing Intelligence Platform")
        return ("\n".join(lines) + "\n").encode("utf-8")


class StructuredDocumentRenderer(ReportRenderer):
    media_type = "application/pdf"
    file_extension = ".pdf"

    def render(self, result: AnalysisResult) -> bytes:
        buffer = io.BytesIO()
        try:
            doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=50, leftMargin=50,
                                    topMargin=50, bottomMargin=50,
                                    title="SecureScan Phishing Analysis Report")
            doc.build(self._story(result))
        except Exception as e:
            logger.error(f"PDF generation failed: {e}")
            raise ReportRenderError(f"PDF generation failed: {e}") from e
        return buffer.getvalue()

    def _story(self, result: AnalysisResult) -> list:
        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            'ReportTitle',
            parent=styles['Heading1'],
            fontSize=22,
            spaceAfter=20,
            alignment=TA_CENTER,
            textColor=colors.darkblue
        )
        heading_style = ParagraphStyle(
            'ReportHeading',
            parent=styles['Heading2'],
            fontSize=14,
            spaceAfter=8,
            spaceBefore=16,
            textColor=colors.darkblue
        )
        normal_style = styles['Normal']
        level = result.risk_level.label
        email = result.email

        story = [
            Paragraph("SecureScan Phishing Analysis Report", title_style),
            Paragraph(f"Generated on: {result.analysis_date.strftime(DATE_FORMAT)}", normal_style),
            Spacer(1, 16),
        ]

        verdict = Table(
            [["Risk Level", "Risk Score", "Confidence"],
             [level.upper(), f"{result.risk_score} / 100",
              f"{result.confidence_percent}% ({result.confidence_label})"]],
            colWidths=[2 * inch] * 3,
        )
        verdict.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('BACKGROUND', (0, 1), (0, 1), self.risk_color(result)),
            ('TEXTCOLOR', (0, 1), (0, 1), colors.white),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('GRID', (0, 0), (-1, -1), 1, colors.black)
        ]))
        story.append(verdict)

        story.append(Paragraph("Message", heading_style))
        story.append(self._kv_table([
            ("Subject", email.subject),
            ("From", email.from_addr),
            ("Reply-To", email.reply_to),
        ]))

        story.append(Paragraph("Summary", heading_style))
        story.append(Paragraph(escape(result.summary), normal_style))

        story.append(Paragraph(f"Indicators ({len(result.indicators)} found)", heading_style))
        if result.indicators:
            rows = [["Weight", "Indicator", "Details"]]
            rows.extend(
                [f"+{i.weight}", Paragraph(escape(i.name), normal_style),
                 Paragraph(escape(i.description), normal_style)]
                for i in result.indicators
            )
            table = Table(rows, colWidths=[0.7 * inch, 1.8 * inch, 3.5 * inch], repeatRows=1)
            table.setStyle(TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
                ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('VALIGN', (0, 0), (-1, -1), 'TOP'),
                ('GRID', (0, 0), (-1, -1), 0.5, colors.black)
            ]))
            story.append(table)
        else:
            story.append(Paragraph("No phishing indicators detected.", normal_style))

        if result.matched_keywords:
            story.append(Paragraph("Matched Keywords", heading_style))
            story.append(self._kv_table(
                [(category, ", ".join(words)) for category, words in result.matched_keywords]
            ))

        if result.header_parsed:
            story.append(Paragraph("Header Forensics", heading_style))
            story.append(self._kv_table(_header_rows(result)))

        return story

    @staticmethod
    def risk_color(result: AnalysisResult) -> colors.Color:
        return colors.HexColor(result.risk_level.color)

    @staticmethod
    def _kv_table(rows) -> Table:
        normal = getSampleStyleSheet()['Normal']
        data = [[label, Paragraph(escape(value or "-"), normal)] for label, value in rows]
        table = Table(data, colWidths=[1.6 * inch, 4.4 * inch])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BACKGROUND', (0, 0), (0, -1), colors.beige),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black)
        ]))
        return table


def _header_rows(result: AnalysisResult):
    return [
        ("Originating IP", result.originating_ip),
        ("Received from", result.received_from),
        ("DKIM", result.dkim),
        ("SPF", result.spf),
        ("Return-Path", result.return_path),
    ]


RENDERERS = {
    "pdf": StructuredDocumentRenderer,
    "text": PlainTextRenderer,
}


def get_renderer(report_format: str = None) -> ReportRenderer:
    """Renderer for the configured report format"""
    report_format = (report_format or settings.REPORT_FORMAT).lower()
    try:
        return RENDERERS[report_format]()
    except KeyError:
        raise ValueError(f"Unknown report format: {report_format!r}") from None
