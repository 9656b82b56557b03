import pytest

from securescan.core.header_analyzer import HeaderAnalyzer
from securescan.core.models import HeaderFields


FULL_HEADERS = (
    "Return-Path: <bounce@mailer.evil.ru>\n"
    "Received: from mail.evil.ru (mail.evil.ru [203.0.113.5])\n"
    "\tby mx.example.com with ESMTP id abc\n"
    "X-Originating-IP: [192.168.1.20]\n"
    "Authentication-Results: mx.example.com; spf=softfail smtp.mailfrom=evil.ru\n"
    'From: "Amazon Support" <support@amazon.com>\n'
    "Subject: Your order\n"
)

SPOOFED_DISPLAY = (
    'From: "PayPal Security" <alerts@random-domain.net>\n'
    "DKIM-Signature: v=1; a=rsa-sha256; d=random-domain.net; s=sel;\n"
    " bh=abc; h=from:subject\n"
    "Subject: Notice\n"
)


@pytest.fixture
def analyzer():
    return HeaderAnalyzer()


class TestParse:
    def test_full_header_block(self, analyzer):
        fields = analyzer.parse(FULL_HEADERS)

        assert fields.parsed is True
        assert fields.originating_ip == "192.168.1.20"
        assert fields.received_from == "mail.evil.ru  [203.0.113.5]"
        assert fields.spf == "SOFTFAIL"
        assert fields.return_path == "bounce@mailer.evil.ru"
        assert fields.dkim == "Not present"

    def test_folded_dkim_signature(self, analyzer):
        fields = analyzer.parse(SPOOFED_DISPLAY)
        assert fields.dkim == "domain=random-domain.net algo=rsa-sha256"
        assert fields.parsed is True

    def test_dkim_without_domain(self, analyzer):
        fields = analyzer.parse("DKIM-Signature: v=1; s=sel; bh=abc\n")
        assert fields.dkim == "Present"

    def test_received_spf_header(self, analyzer):
        fields = analyzer.parse("Received-SPF: Pass (sender ok)\n")
        assert fields.spf == "PASS"

    def test_sender_ip_variants(self, analyzer):
        assert analyzer.parse("X-Sender-IP: 10.1.2.3\n").originating_ip == "10.1.2.3"
        assert analyzer.parse("x-source-ip: 8.8.8.8\n").originating_ip == "8.8.8.8"

    @pytest.mark.parametrize("raw", [None, "", "   \n  "])
    def test_blank_input(self, analyzer, raw):
        assert analyzer.parse(raw) == HeaderFields()

    def test_text_without_headers(self, analyzer):
        fields = analyzer.parse("just some text")
        assert fields.parsed is False
        assert fields.dkim == "Not present"
        assert fields.spf == ""


class TestEvaluate:
    def test_spf_fail_without_dkim(self, analyzer):
        raw = "Authentication-Results: spf=fail"
        fields = analyzer.parse(raw)
        report = analyzer.evaluate(fields, "", raw)

        assert report.names == ["SPF FAIL", "No DKIM Signature"]
        assert report.weights == [30, 20]
        assert report.total_weight == 50

    def test_display_name_spoofing(self, analyzer):
        fields = analyzer.parse(SPOOFED_DISPLAY)
        report = analyzer.evaluate(fields, "alerts@random-domain.net", SPOOFED_DISPLAY)

        assert report.names == ["Display Name Spoofing"]
        assert report.total_weight == 35
        assert "'paypal'" in report.reasons[0]

    def test_matching_display_name_is_not_flagged(self, analyzer):
        raw = 'From: "Amazon" <orders@amazon.com>\nDKIM-Signature: d=amazon.com; a=rsa-sha256\n'
        report = analyzer.evaluate(analyzer.parse(raw), "orders@amazon.com", raw)
        assert not report.has_flags

    def test_full_header_block(self, analyzer):
        fields = analyzer.parse(FULL_HEADERS)
        report = analyzer.evaluate(fields, "support@amazon.com", FULL_HEADERS)

        assert report.names == [
            "SPF SOFTFAIL",
            "No DKIM Signature",
            "Return-Path Domain Mismatch",
            "Private Originating IP",
        ]
        assert report.total_weight == 95
        assert "(mailer.evil.ru)" in report.reasons[2]
        assert "(amazon.com)" in report.reasons[2]

    def test_return_path_needs_from_address(self, analyzer):
        fields = analyzer.parse(FULL_HEADERS)
        report = analyzer.evaluate(fields, "", FULL_HEADERS)
        assert "Return-Path Domain Mismatch" not in report.names

    @pytest.mark.parametrize("ip,flagged", [
        ("10.0.0.5", True),
        ("192.168.0.1", True),
        ("172.16.4.4", True),
        ("8.8.8.8", False),
    ])
    def test_private_originating_ip(self, analyzer, ip, flagged):
        fields = HeaderFields(originating_ip=ip, dkim="domain=x.com", parsed=True)
        report = analyzer.evaluate(fields, "", "")
        assert ("Private Originating IP" in report.names) is flagged

    def test_empty_fields_raise_nothing(self, analyzer):
        report = analyzer.evaluate(HeaderFields(), "a@b.com", "")
        assert not report.has_flags
        assert report.to_dict() == {"flags": [], "total_weight": 0}
