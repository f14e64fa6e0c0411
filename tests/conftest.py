"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from dataclasses import replace
from datetime import datetime, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from finrisk_gateway.api.main import create_app
from finrisk_gateway.infrastructure.database.models import Base
from finrisk_gateway.infrastructure.database.session import get_db
from finrisk_gateway.domain.models import (
    ApplicationStatus,
    BankStatementAnalysis,
    EmploymentType,
    LoanApplication,
    ResidenceType,
    VerificationStatus,
    VideoKycStatus,
)


# Test database
engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def app(db: Session):
    """FastAPI app wired to the test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app) -> TestClient:
    """Create FastAPI test client with test database"""
    return TestClient(app)


@pytest.fixture
def clean_statement() -> BankStatementAnalysis:
    """Healthy salaried account: high balance, no bounces, one small EMI"""
    return BankStatementAnalysis(
        avg_monthly_balance=80000,
        salary_credits=65000,
        existing_emis=1,
        emi_amount=10000,
        bounces=0,
        negative_balance_days=0,
        income_stability_score=92,
        summary="Consistent salary with zero bounces.",
    )


@pytest.fixture
def distressed_statement() -> BankStatementAnalysis:
    """Overdrawn account with a bounce and three running EMIs"""
    return BankStatementAnalysis(
        avg_monthly_balance=0,
        salary_credits=0,
        existing_emis=3,
        emi_amount=8000,
        bounces=1,
        negative_balance_days=5,
        income_stability_score=20,
        summary="Frequent overdrafts.",
    )


@pytest.fixture
def draft_application() -> LoanApplication:
    """DRAFT application for a salaried home owner earning 65,000"""
    return LoanApplication(
        id="app-0001",
        mobile_number="9876543210",
        full_name="Asha Verma",
        dob="1990-04-12",
        pan_number="ABCDE1234F",
        aadhaar_number="123456789012",
        current_address="12 MG Road, Pune",
        residence_type=ResidenceType.OWN,
        employment_type=EmploymentType.SALARIED,
        company_name="Acme Pvt Ltd",
        monthly_income=65000,
        bank_name="HDFC Bank",
        account_number="50100234567890",
        ifsc_code="HDFC0001234",
        created_at=FIXED_NOW,
    )


@pytest.fixture
def verified_draft_application(draft_application) -> LoanApplication:
    """DRAFT whose PAN has cleared verification, ready to submit"""
    return replace(draft_application, pan_status=VerificationStatus.VERIFIED)


@pytest.fixture
def submitted_application(verified_draft_application, clean_statement) -> LoanApplication:
    """SUBMITTED application, video KYC not yet started"""
    from finrisk_gateway.domain.underwriting import submit_application

    application, _ = submit_application(verified_draft_application, clean_statement, "SYSTEM", now=FIXED_NOW)
    assert application.status == ApplicationStatus.SUBMITTED
    assert application.video_kyc_status == VideoKycStatus.NOT_STARTED
    return application


@pytest.fixture
def application_payload() -> dict:
    """Valid POST /v1/applications body"""
    return {
        "mobile_number": "9876543210",
        "full_name": "Asha Verma",
        "dob": "1990-04-12",
        "gender": "Female",
        "pan_number": "ABCDE1234F",
        "aadhaar_number": "123456789012",
        "current_address": "12 MG Road, Pune",
        "residence_type": "OWN",
        "employment_type": "SALARIED",
        "company_name": "Acme Pvt Ltd",
        "monthly_income": 65000,
        "bank_name": "HDFC Bank",
        "account_number": "50100234567890",
        "ifsc_code": "HDFC0001234",
        "emi_deduction_method": "e-NACH",
        "emi_deduction_date": 5,
    }
