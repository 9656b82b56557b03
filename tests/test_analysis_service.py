"""End-to-end tests for the scan pipeline."""

from concurrent.futures import ThreadPoolExecutor

from securescan.core.models import Email, RiskLevel


def comparable(result):
    data = result.to_dict()
    data.pop("analysis_date")
    return data


SPOOFED_RAW = (
    'From: "PayPal Security" <alerts@random-domain.net>\n'
    "Authentication-Results: mx.example.com; spf=fail\n"
    "\n"
    "Your statement is ready."
)


def test_safe_email(analysis_service, safe_email):
    outcome = analysis_service.analyze(safe_email)
    result = outcome.result

    assert result.risk_score == 0
    assert result.risk_level == RiskLevel.SAFE
    assert result.indicators == []
    assert result.confidence_percent == 30
    assert outcome.url_statuses == {}
    assert outcome.header_report is None
    assert result.header_parsed is False


def test_phishing_email(analysis_service, phishing_email):
    outcome = analysis_service.analyze(phishing_email)
    result = outcome.result

    assert [i.name for i in result.indicators] == [
        "Suspicious Link",
        "Urgency Language",
        "Sender / Reply-To Mismatch",
        "Suspicious URL",
    ]
    assert result.risk_score == 100
    assert result.risk_level == RiskLevel.MALICIOUS
    assert result.confidence_percent == 97
    assert result.summary == (
        "Malicious content detected. 4 indicators found. "
        "Strongest signal: Urgency Language. Confidence: 97% (Very High)."
    )
    assert result.indicators[-1].description == (
        "http://bit.ly/fake-login — Uses unencrypted HTTP, credentials can be intercepted"
    )
    assert list(outcome.url_statuses) == ["http://bit.ly/fake-login"]


def test_link_and_url_findings_are_both_kept(analysis_service):
    outcome = analysis_service.analyze(Email(body="see https://bit.ly/x"))
    names = [i.name for i in outcome.result.indicators]
    assert names == ["Suspicious Link", "Suspicious URL"]
    assert outcome.result.risk_score == 50


def test_raw_text_defaults_to_body(analysis_service):
    outcome = analysis_service.analyze(Email(subject="see https://bit.ly/x", body="hello"))
    assert outcome.url_statuses == {}


def test_urls_come_from_raw_text(analysis_service):
    email = Email(body="hello")
    outcome = analysis_service.analyze(email, raw_text="Header: x\n\nhttps://example.com/login")
    assert list(outcome.url_statuses) == ["https://example.com/login"]
    assert outcome.result.risk_score == 20


def test_header_findings_are_merged(analysis_service):
    email = Email(
        from_addr="alerts@random-domain.net",
        subject="Account notice",
        body="Your statement is ready.",
    )
    outcome = analysis_service.analyze(email, raw_text=SPOOFED_RAW, parse_headers=True)
    result = outcome.result

    assert outcome.header_report.names == [
        "SPF FAIL", "No DKIM Signature", "Display Name Spoofing",
    ]
    assert result.risk_score == 85
    assert result.risk_level == RiskLevel.MALICIOUS
    assert result.confidence_percent == 97
    assert result.header_parsed is True
    assert result.spf == "FAIL"
    assert result.dkim == "Not present"


def test_headers_skipped_unless_requested(analysis_service):
    email = Email(from_addr="alerts@random-domain.net", body="Your statement is ready.")
    outcome = analysis_service.analyze(email, raw_text=SPOOFED_RAW)

    assert outcome.header_report is None
    assert outcome.result.risk_score == 0
    assert outcome.result.header_parsed is False


def test_each_stage_is_clamped(analysis_service, phishing_email):
    raw = "Authentication-Results: spf=fail\n\n" + phishing_email.body
    outcome = analysis_service.analyze(phishing_email, raw_text=raw, parse_headers=True)
    result = outcome.result

    assert len(result.indicators) == 6
    assert result.risk_score == 100
    assert result.confidence_percent == 97


def test_confidence_uses_final_indicator_count(analysis_service):
    outcome = analysis_service.analyze(Email(body="hello https://example.com/login"))
    # one URL indicator only, found after the content stage
    assert outcome.result.risk_score == 20
    assert outcome.result.confidence_percent == 25
    assert "1 indicator found" in outcome.result.summary


def test_analysis_is_deterministic(analysis_service, phishing_email):
    first = analysis_service.analyze(phishing_email).result
    second = analysis_service.analyze(phishing_email).result
    assert comparable(first) == comparable(second)


def test_concurrent_scans_share_one_service(analysis_service, phishing_email, safe_email):
    emails = [phishing_email, safe_email] * 10
    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(lambda e: analysis_service.analyze(e).result, emails))

    assert [r.risk_score for r in results] == [100, 0] * 10


def test_analyze_headers_only(analysis_service):
    outcome = analysis_service.analyze_headers(SPOOFED_RAW, "alerts@random-domain.net")
    assert outcome.result.risk_score == 85
    assert outcome.result.email.from_addr == "alerts@random-domain.net"
    assert outcome.header_report.total_weight == 85


def test_analyze_headers_blank(analysis_service):
    outcome = analysis_service.analyze_headers("")
    assert outcome.result.risk_score == 0
    assert outcome.result.header_parsed is False
    assert not outcome.header_report.has_flags


def test_outcome_to_dict(analysis_service, phishing_email):
    data = analysis_service.analyze(phishing_email).to_dict()

    assert data["risk_level"] == "Malicious"
    assert data["email"]["from"] == "support@bank-secure.com"
    assert data["urls"][0]["url"] == "http://bit.ly/fake-login"
    assert data["header_flags"] is None
    assert data["matched_keywords"][0] == {
        "category": "Suspicious Links",
        "matches": ["http:// (unencrypted)", "bit.ly"],
    }
    assert data["processing_time"] >= 0


def test_outcome_breakdown(analysis_service, phishing_email):
    data = analysis_service.analyze(phishing_email).to_dict()

    # pre-clamp weights; the score itself stops at 100
    assert data["breakdown"] == {
        "Suspicious Link": 30,
        "Urgency Language": 32,
        "Sender / Reply-To Mismatch": 25,
        "Suspicious URL": 20,
    }


def test_headers_only_breakdown(analysis_service):
    outcome = analysis_service.analyze_headers("Authentication-Results: spf=fail")
    assert outcome.breakdown == {"SPF FAIL": 30, "No DKIM Signature": 20}
