"""Data access layer for loan applications and audit entries"""

from dataclasses import asdict, replace
from typing import Any, Dict, List, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session
from finrisk_gateway.infrastructure.database.models import LoanApplicationRecord, AuditLogRecord
from finrisk_gateway.domain.exceptions import ApplicationNotFoundError, ConcurrentModificationError
from finrisk_gateway.domain.models import (
    ApplicationStatus,
    AuditAction,
    AuditLogEntry,
    BankStatementAnalysis,
    EmploymentType,
    FlagSeverity,
    InternalCreditScore,
    LivenessResult,
    LoanApplication,
    LoanOffer,
    ResidenceType,
    RiskCategory,
    RiskFlag,
    ScoreFactors,
    VerificationStatus,
    VideoKycStatus,
)


def _score_to_json(score: Optional[InternalCreditScore]) -> Optional[Dict[str, Any]]:
    if score is None:
        return None
    return {
        "score": score.score,
        "category": score.category.value,
        "factors": asdict(score.factors),
        "risk_flags": [
            {"code": f.code, "severity": f.severity.value, "description": f.description}
            for f in score.risk_flags
        ],
    }


def _score_from_json(data: Optional[Dict[str, Any]]) -> Optional[InternalCreditScore]:
    if data is None:
        return None
    return InternalCreditScore(
        score=data["score"],
        factors=ScoreFactors(**data["factors"]),
        risk_flags=tuple(
            RiskFlag(f["code"], FlagSeverity(f["severity"]), f["description"]) for f in data["risk_flags"]
        ),
        category=RiskCategory(data["category"]),
    )


def _columns(application: LoanApplication) -> Dict[str, Any]:
    """Map a domain application onto table columns"""
    return {
        "status": application.status.value,
        "mobile_number": application.mobile_number,
        "full_name": application.full_name,
        "dob": application.dob,
        "gender": application.gender,
        "pan_number": application.pan_number,
        "pan_status": application.pan_status.value,
        "aadhaar_number": application.aadhaar_number,
        "aadhaar_status": application.aadhaar_status.value,
        "current_address": application.current_address,
        "residence_type": application.residence_type.value,
        "employment_type": application.employment_type.value,
        "company_name": application.company_name,
        "monthly_income": application.monthly_income,
        "bank_name": application.bank_name,
        "account_number": application.account_number,
        "ifsc_code": application.ifsc_code,
        "emi_deduction_method": application.emi_deduction_method,
        "emi_deduction_date": application.emi_deduction_date,
        "video_kyc_status": application.video_kyc_status.value,
        "liveness_result": asdict(application.liveness_result) if application.liveness_result else None,
        "statement_analysis": (
            asdict(application.statement_analysis) if application.statement_analysis else None
        ),
        "credit_score": _score_to_json(application.credit_score),
        "loan_offer": asdict(application.loan_offer) if application.loan_offer else None,
    }


def to_domain(record: LoanApplicationRecord) -> LoanApplication:
    return LoanApplication(
        id=record.id,
        status=ApplicationStatus(record.status),
        mobile_number=record.mobile_number,
        full_name=record.full_name,
        dob=record.dob,
        gender=record.gender,
        pan_number=record.pan_number,
        pan_status=VerificationStatus(record.pan_status),
        aadhaar_number=record.aadhaar_number,
        aadhaar_status=VerificationStatus(record.aadhaar_status),
        current_address=record.current_address,
        residence_type=ResidenceType(record.residence_type),
        employment_type=EmploymentType(record.employment_type),
        company_name=record.company_name,
        monthly_income=record.monthly_income,
        bank_name=record.bank_name,
        account_number=record.account_number,
        ifsc_code=record.ifsc_code,
        emi_deduction_method=record.emi_deduction_method,
        emi_deduction_date=record.emi_deduction_date,
        video_kyc_status=VideoKycStatus(record.video_kyc_status),
        liveness_result=LivenessResult(**record.liveness_result) if record.liveness_result else None,
        statement_analysis=(
            BankStatementAnalysis(**record.statement_analysis) if record.statement_analysis else None
        ),
        credit_score=_score_from_json(record.credit_score),
        loan_offer=LoanOffer(**record.loan_offer) if record.loan_offer else None,
        created_at=record.created_at,
        version=record.version,
    )


class ApplicationRepository:
    """Repository for loan applications"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, application: LoanApplication) -> LoanApplication:
        """Persist a new application"""
        record = LoanApplicationRecord(
            id=application.id,
            created_at=application.created_at,
            version=application.version,
            **_columns(application),
        )
        self.db.add(record)
        self.db.flush()
        return application

    def get(self, application_id: str) -> LoanApplication:
        """
        Fetch one application.

        Raises:
            ApplicationNotFoundError: No application with this id
        """
        record = self.db.get(LoanApplicationRecord, application_id)
        if record is None:
            raise ApplicationNotFoundError(f"Application {application_id} not found")
        return to_domain(record)

    def list_applications(self, status: Optional[ApplicationStatus] = None, limit: int = 50) -> List[LoanApplication]:
        """Fetch recent applications, newest first"""
        query = self.db.query(LoanApplicationRecord)
        if status is not None:
            query = query.filter(LoanApplicationRecord.status == status.value)
        records = query.order_by(LoanApplicationRecord.created_at.desc()).limit(limit).all()
        return [to_domain(r) for r in records]

    def save(self, application: LoanApplication) -> LoanApplication:
        """
        Write back an application read at `application.version`.

        Raises:
            ConcurrentModificationError: Another writer saved this application first
        """
        result = self.db.execute(
            update(LoanApplicationRecord)
            .where(LoanApplicationRecord.id == application.id)
            .where(LoanApplicationRecord.version == application.version)
            .values(version=application.version + 1, **_columns(application))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrentModificationError(
                f"Application {application.id} was modified concurrently; reload and retry"
            )
        # Drop any cached identity so later reads see the new row
        self.db.expire_all()
        return replace(application, version=application.version + 1)


class AuditLogRepository:
    """Append-only repository for audit entries; no update or delete operations"""

    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        self.db.add(
            AuditLogRecord(
                entry_id=entry.id,
                application_id=entry.application_id,
                action=entry.action.value,
                actor=entry.actor,
                details=entry.details,
                timestamp=entry.timestamp,
            )
        )
        self.db.flush()
        return entry

    def list_entries(self, application_id: Optional[str] = None, limit: int = 100) -> List[AuditLogEntry]:
        """Fetch entries newest first, optionally for one application"""
        query = self.db.query(AuditLogRecord)
        if application_id is not None:
            query = query.filter(AuditLogRecord.application_id == application_id)
        records = query.order_by(AuditLogRecord.seq.desc()).limit(limit).all()
        return [
            AuditLogEntry(
                id=r.entry_id,
                application_id=r.application_id,
                action=AuditAction(r.action),
                actor=r.actor,
                details=r.details,
                timestamp=r.timestamp,
            )
            for r in records
        ]
