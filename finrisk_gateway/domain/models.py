"""Domain models - pure Python dataclasses representing business entities"""

import enum
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

from finrisk_gateway.domain.exceptions import InvalidInputError


class EmploymentType(str, enum.Enum):
    SALARIED = "SALARIED"
    SELF_EMPLOYED = "SELF_EMPLOYED"


class ResidenceType(str, enum.Enum):
    OWN = "OWN"
    FAMILY = "FAMILY"
    RENTED = "RENTED"


class RiskCategory(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class FlagSeverity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class VerificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    FAILED = "FAILED"
    # Provider unreachable and operator enabled the sandbox fallback; not a real verification
    SANDBOX_BYPASS = "SANDBOX_BYPASS"


class VideoKycStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_QUEUE = "IN_QUEUE"
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ApplicationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @classmethod
    def terminal_states(cls) -> frozenset["ApplicationStatus"]:
        """States with no further lifecycle transitions."""
        return frozenset({cls.APPROVED, cls.REJECTED})


class Decision(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class AuditAction(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    SUBMIT = "SUBMIT"
    PAN_VERIFIED = "PAN_VERIFIED"
    PAN_FAILED = "PAN_FAILED"
    PAN_SANDBOX_BYPASS = "PAN_SANDBOX_BYPASS"
    AADHAAR_VERIFIED = "AADHAAR_VERIFIED"
    AADHAAR_FAILED = "AADHAAR_FAILED"
    LIVENESS_CHECKED = "LIVENESS_CHECKED"
    VERIFICATION_UNAVAILABLE = "VERIFICATION_UNAVAILABLE"
    VKYC_INIT = "VKYC_INIT"
    VKYC_COMPLETED = "VKYC_COMPLETED"
    VKYC_FAILED = "VKYC_FAILED"


class ProviderOutcome(str, enum.Enum):
    """Final verdict reported by an identity provider"""

    VERIFIED = "VERIFIED"
    FAILED = "FAILED"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass(frozen=True)
class ApplicantProfile:
    """Applicant inputs used for scoring and offer sizing"""

    monthly_income: float
    employment_type: EmploymentType
    residence_type: ResidenceType

    def __post_init__(self) -> None:
        income = self.monthly_income
        if isinstance(income, bool) or not isinstance(income, (int, float)):
            raise InvalidInputError(f"Monthly income must be a number, got {income!r}")
        if math.isnan(income) or math.isinf(income) or income < 0:
            raise InvalidInputError(f"Monthly income must be a non-negative amount, got {income!r}")


@dataclass(frozen=True)
class BankStatementAnalysis:
    """Structured output of the external statement analyzer"""

    avg_monthly_balance: float
    salary_credits: float
    existing_emis: int
    emi_amount: float
    bounces: int
    negative_balance_days: int
    income_stability_score: float  # 0-100
    summary: str = ""


@dataclass(frozen=True)
class LivenessResult:
    """Biometric liveness verdict for one selfie capture"""

    is_live: bool
    confidence_score: float  # 0-100
    reasoning: str = ""


@dataclass(frozen=True)
class VerificationOutcome:
    """Result handed back by the PAN/Aadhaar provider boundary"""

    outcome: ProviderOutcome
    details: str = ""
    name_on_record: Optional[str] = None

    @classmethod
    def unavailable(cls, reason: str) -> "VerificationOutcome":
        return cls(outcome=ProviderOutcome.UNAVAILABLE, details=reason)


@dataclass(frozen=True)
class RiskFlag:
    code: str
    severity: FlagSeverity
    description: str


@dataclass(frozen=True)
class ScoreFactors:
    """Point contribution of each scoring factor"""

    bank_behavior: int = 0
    income_employment: int = 0
    residence: int = 0
    kyc: int = 0
    discipline: int = 0
    stability: int = 0

    @property
    def total(self) -> int:
        return (
            self.bank_behavior
            + self.income_employment
            + self.residence
            + self.kyc
            + self.discipline
            + self.stability
        )


@dataclass(frozen=True)
class InternalCreditScore:
    """Output of one scoring pass"""

    score: int
    factors: ScoreFactors
    risk_flags: Tuple[RiskFlag, ...]
    category: RiskCategory


@dataclass(frozen=True)
class LoanOffer:
    amount: int
    roi: float  # annual rate, percent
    tenure: int  # months
    emi: int


@dataclass(frozen=True)
class LoanApplication:
    """Aggregate root tracked through the underwriting lifecycle"""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: ApplicationStatus = ApplicationStatus.DRAFT
    mobile_number: str = ""
    full_name: str = ""
    dob: str = ""
    gender: str = ""
    pan_number: str = ""
    pan_status: VerificationStatus = VerificationStatus.PENDING
    aadhaar_number: str = ""
    aadhaar_status: VerificationStatus = VerificationStatus.PENDING
    current_address: str = ""
    residence_type: ResidenceType = ResidenceType.RENTED
    employment_type: EmploymentType = EmploymentType.SALARIED
    company_name: str = ""
    monthly_income: float = 0
    bank_name: str = ""
    account_number: str = ""
    ifsc_code: str = ""
    emi_deduction_method: str = "e-NACH"
    emi_deduction_date: int = 5
    liveness_result: Optional[LivenessResult] = None
    video_kyc_status: VideoKycStatus = VideoKycStatus.NOT_STARTED
    statement_analysis: Optional[BankStatementAnalysis] = None
    credit_score: Optional[InternalCreditScore] = None
    loan_offer: Optional[LoanOffer] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0

    @property
    def profile(self) -> ApplicantProfile:
        return ApplicantProfile(
            monthly_income=self.monthly_income,
            employment_type=self.employment_type,
            residence_type=self.residence_type,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in ApplicationStatus.terminal_states()


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable record of one state-changing or verification action"""

    application_id: str
    action: AuditAction
    actor: str
    details: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
