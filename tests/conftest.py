"""
Test configuration.

Environment variables are set before anything from securescan is imported so
the settings object picks up an in-memory database and plain-text reports.
"""

import os

test_env_vars = {
    'DATABASE_URL': 'sqlite://',
    'REPORT_FORMAT': 'text',
    'LOG_LEVEL': 'ERROR',
    'DEBUG': 'false',
}

for key, value in test_env_vars.items():
    os.environ[key] = value

import pytest

from securescan.core.models import Email
from securescan.database import SessionLocal, init_db
from securescan.models import ScanRecord
from securescan.services.analysis_service import AnalysisService


@pytest.fixture
def analysis_service():
    return AnalysisService()


@pytest.fixture
def safe_email():
    return Email(
        from_addr="hr@company.com",
        reply_to="hr@company.com",
        subject="Meeting Reminder",
        body="Reminder: team meeting tomorrow at 2pm.",
    )


@pytest.fixture
def phishing_email():
    return Email(
        from_addr="support@bank-secure.com",
        reply_to="reply@scam-domain.com",
        subject="URGENT: Verify Account",
        body="Act now! Verify immediately at http://bit.ly/fake-login",
    )


@pytest.fixture
def db_session():
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.query(ScanRecord).delete()
        db.commit()
        db.close()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from securescan.main import app

    with TestClient(app) as test_client:
        yield test_client
        test_client.delete("/api/v1/scans")
