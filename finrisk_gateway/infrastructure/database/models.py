"""SQLAlchemy ORM models for loan applications and the audit trail"""

from sqlalchemy import Column, String, Float, DateTime, Integer, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class LoanApplicationRecord(Base):
    """Loan application aggregate; nested value objects stored as JSON"""

    __tablename__ = "loan_application"

    id = Column(String(36), primary_key=True)
    status = Column(Text, nullable=False, index=True)
    mobile_number = Column(Text, nullable=False)
    full_name = Column(Text, nullable=False)
    dob = Column(Text, nullable=False)
    gender = Column(Text, nullable=False, default="")
    pan_number = Column(Text, nullable=False)
    pan_status = Column(Text, nullable=False)
    aadhaar_number = Column(Text, nullable=False)
    aadhaar_status = Column(Text, nullable=False)
    current_address = Column(Text, nullable=False)
    residence_type = Column(Text, nullable=False)
    employment_type = Column(Text, nullable=False)
    company_name = Column(Text, nullable=False, default="")
    monthly_income = Column(Float, nullable=False)
    bank_name = Column(Text, nullable=False)
    account_number = Column(Text, nullable=False)
    ifsc_code = Column(Text, nullable=False)
    emi_deduction_method = Column(Text, nullable=False)
    emi_deduction_date = Column(Integer, nullable=False)
    video_kyc_status = Column(Text, nullable=False)
    liveness_result = Column(JSON, nullable=True)
    statement_analysis = Column(JSON, nullable=True)
    credit_score = Column(JSON, nullable=True)
    loan_offer = Column(JSON, nullable=True)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class AuditLogRecord(Base):
    """Append-only audit entry; seq gives the total insertion order"""

    __tablename__ = "audit_log"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    entry_id = Column(String(36), nullable=False, unique=True)
    application_id = Column(String(36), nullable=False, index=True)
    action = Column(Text, nullable=False)
    actor = Column(Text, nullable=False)
    details = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
