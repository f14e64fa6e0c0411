"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

from finrisk_gateway.domain.models import (
    ApplicationStatus,
    AuditAction,
    Decision,
    EmploymentType,
    FlagSeverity,
    ResidenceType,
    RiskCategory,
    VerificationStatus,
    VideoKycStatus,
)


class ApplicationCreateRequest(BaseModel):
    """Request body for POST /v1/applications; field rules are enforced by the draft workflow"""

    mobile_number: str = ""
    full_name: str = ""
    dob: str = Field("", description="Date of birth, YYYY-MM-DD")
    gender: str = ""
    pan_number: str = ""
    aadhaar_number: str = ""
    current_address: str = ""
    residence_type: str = ResidenceType.RENTED.value
    employment_type: str = EmploymentType.SALARIED.value
    company_name: str = ""
    monthly_income: Optional[float] = None
    bank_name: str = ""
    account_number: str = ""
    ifsc_code: str = ""
    emi_deduction_method: str = "e-NACH"
    emi_deduction_date: int = 5


class ActorRequest(BaseModel):
    """Optional acting identity for verification calls"""

    actor: Optional[str] = None


class LivenessRequest(ActorRequest):
    image_base64: str = Field(..., min_length=1, description="Selfie as a base64 data URL")


class SubmitRequest(ActorRequest):
    statement_text: str = Field(..., min_length=1, description="Bank statement text for the analyzer")


class VideoKycRequest(ActorRequest):
    status: VideoKycStatus


class DecisionRequest(ActorRequest):
    """Request body for POST /v1/applications/{id}/decision"""

    decision: Decision
    justification: str = ""


class ProfileSchema(BaseModel):
    monthly_income: float = Field(..., ge=0)
    employment_type: EmploymentType
    residence_type: ResidenceType


class StatementAnalysisSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    avg_monthly_balance: float
    salary_credits: float
    existing_emis: int
    emi_amount: float
    bounces: int
    negative_balance_days: int
    income_stability_score: float
    summary: str = ""


class StatementAnalysisInput(StatementAnalysisSchema):
    existing_emis: int = Field(..., ge=0)
    emi_amount: float = Field(..., ge=0)
    bounces: int = Field(..., ge=0)
    negative_balance_days: int = Field(..., ge=0)
    income_stability_score: float = Field(..., ge=0, le=100)


class ScoreRequest(BaseModel):
    """Request body for POST /v1/score"""

    profile: ProfileSchema
    statement_analysis: Optional[StatementAnalysisInput] = None


class RiskFlagSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    severity: FlagSeverity
    description: str


class ScoreFactorsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    bank_behavior: int
    income_employment: int
    residence: int
    kyc: int
    discipline: int
    stability: int


class CreditScoreSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    score: int
    factors: ScoreFactorsSchema
    risk_flags: List[RiskFlagSchema]
    category: RiskCategory


class LoanOfferSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    amount: int
    roi: float
    tenure: int
    emi: int


class LivenessResultSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_live: bool
    confidence_score: float
    reasoning: str


class ScoreResponse(BaseModel):
    """Response for POST /v1/score"""

    credit_score: CreditScoreSchema
    loan_offer: LoanOfferSchema


class ApplicationResponse(BaseModel):
    """Loan application as shown to underwriters; Aadhaar and account numbers are withheld"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    status: ApplicationStatus
    mobile_number: str
    full_name: str
    dob: str
    pan_number: str
    pan_status: VerificationStatus
    aadhaar_status: VerificationStatus
    current_address: str
    residence_type: ResidenceType
    employment_type: EmploymentType
    company_name: str
    monthly_income: float
    bank_name: str
    ifsc_code: str
    emi_deduction_method: str
    emi_deduction_date: int
    video_kyc_status: VideoKycStatus
    liveness_result: Optional[LivenessResultSchema] = None
    statement_analysis: Optional[StatementAnalysisSchema] = None
    credit_score: Optional[CreditScoreSchema] = None
    loan_offer: Optional[LoanOfferSchema] = None
    created_at: datetime
    version: int


class AuditLogEntrySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    action: AuditAction
    actor: str
    details: str
    timestamp: datetime


class TransitionResponse(BaseModel):
    """Updated application plus the audit entry the action produced"""

    application: ApplicationResponse
    audit_entry: AuditLogEntrySchema


class RecommendationResponse(BaseModel):
    application_id: str
    verdict: str
    confidence: int
    summary: str


class AuditLogResponse(BaseModel):
    """Response for GET /v1/audit-logs"""

    application_id: Optional[str] = None
    entries: List[AuditLogEntrySchema]
