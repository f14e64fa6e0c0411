"""Application draft workflow - validated steps over an immutable draft"""

import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from finrisk_gateway.domain.models import EmploymentType, LoanApplication, ResidenceType
from finrisk_gateway.utils.date_utils import parse_iso_date, years_between

MOBILE_PATTERN = re.compile(r"^\d{10}$")
PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
AADHAAR_PATTERN = re.compile(r"^\d{12}$")
IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")

EMI_DEDUCTION_METHODS = ("e-NACH", "Physical Mandate", "Manual")
MIN_APPLICANT_AGE = 18


@dataclass(frozen=True)
class StepResult:
    """Draft produced by a step plus any validation errors"""

    application: LoanApplication
    errors: List[str] = field(default_factory=list)
    step: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.errors


Step = Callable[[LoanApplication, Mapping[str, Any]], StepResult]


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return str(value).strip() if value is not None else ""


def _enum(enum_cls, value, label: str, errors: List[str]):
    try:
        return enum_cls(value)
    except ValueError:
        errors.append(f"{label} must be one of: {', '.join(m.value for m in enum_cls)}.")
        return None


def capture_contact(draft: LoanApplication, data: Mapping[str, Any]) -> StepResult:
    mobile = _text(data, "mobile_number")
    if not MOBILE_PATTERN.match(mobile):
        return StepResult(draft, ["Please enter a valid 10-digit mobile number."])
    return StepResult(replace(draft, mobile_number=mobile))


def capture_identity(draft: LoanApplication, data: Mapping[str, Any], today: Optional[date] = None) -> StepResult:
    errors: List[str] = []
    full_name = _text(data, "full_name")
    pan = _text(data, "pan_number").upper()
    dob_text = _text(data, "dob")

    if not full_name:
        errors.append("Full Name is required.")
    dob = parse_iso_date(dob_text)
    if dob is None:
        errors.append("Date of Birth is required (YYYY-MM-DD).")
    elif years_between(dob, today or date.today()) < MIN_APPLICANT_AGE:
        errors.append(f"Applicant must be at least {MIN_APPLICANT_AGE} years old.")
    if not PAN_PATTERN.match(pan):
        errors.append("Please enter a valid PAN format (e.g., ABCDE1234F).")

    if errors:
        return StepResult(draft, errors)
    return StepResult(
        replace(draft, full_name=full_name, dob=dob_text, pan_number=pan, gender=_text(data, "gender"))
    )


def capture_aadhaar(draft: LoanApplication, data: Mapping[str, Any]) -> StepResult:
    aadhaar = _text(data, "aadhaar_number")
    if not AADHAAR_PATTERN.match(aadhaar):
        return StepResult(draft, ["Please enter a valid 12-digit Aadhaar number."])
    return StepResult(replace(draft, aadhaar_number=aadhaar))


def capture_address(draft: LoanApplication, data: Mapping[str, Any]) -> StepResult:
    errors: List[str] = []
    address = _text(data, "current_address")
    if not address:
        errors.append("Current address is required.")
    residence = _enum(ResidenceType, data.get("residence_type", draft.residence_type), "Residence type", errors)

    if errors:
        return StepResult(draft, errors)
    return StepResult(replace(draft, current_address=address, residence_type=residence))


def capture_employment(draft: LoanApplication, data: Mapping[str, Any]) -> StepResult:
    errors: List[str] = []
    employment = _enum(
        EmploymentType, data.get("employment_type", draft.employment_type), "Employment type", errors
    )

    income = data.get("monthly_income")
    if isinstance(income, bool) or not isinstance(income, (int, float)) or income != income or income < 0:
        errors.append("Monthly income must be a non-negative amount.")

    if errors:
        return StepResult(draft, errors)
    return StepResult(
        replace(
            draft,
            employment_type=employment,
            company_name=_text(data, "company_name"),
            monthly_income=income,
        )
    )


def capture_bank_details(draft: LoanApplication, data: Mapping[str, Any]) -> StepResult:
    errors: List[str] = []
    bank_name = _text(data, "bank_name")
    account_number = _text(data, "account_number")
    ifsc = _text(data, "ifsc_code").upper()
    method = data.get("emi_deduction_method", draft.emi_deduction_method)
    deduction_day = data.get("emi_deduction_date", draft.emi_deduction_date)

    if not bank_name:
        errors.append("Bank name is required.")
    if not account_number.isdigit() or not 9 <= len(account_number) <= 18:
        errors.append("Account number must be 9 to 18 digits.")
    if not IFSC_PATTERN.match(ifsc):
        errors.append("Please enter a valid IFSC code (e.g., HDFC0001234).")
    if method not in EMI_DEDUCTION_METHODS:
        errors.append(f"EMI deduction method must be one of: {', '.join(EMI_DEDUCTION_METHODS)}.")
    if not isinstance(deduction_day, int) or isinstance(deduction_day, bool) or not 1 <= deduction_day <= 28:
        errors.append("EMI deduction date must be a day between 1 and 28.")

    if errors:
        return StepResult(draft, errors)
    return StepResult(
        replace(
            draft,
            bank_name=bank_name,
            account_number=account_number,
            ifsc_code=ifsc,
            emi_deduction_method=method,
            emi_deduction_date=deduction_day,
        )
    )


DRAFT_STEPS: Sequence[Tuple[str, Step]] = (
    ("contact", capture_contact),
    ("identity", capture_identity),
    ("aadhaar", capture_aadhaar),
    ("address", capture_address),
    ("employment", capture_employment),
    ("bank", capture_bank_details),
)


def run_draft_workflow(
    data: Mapping[str, Any],
    draft: Optional[LoanApplication] = None,
    steps: Sequence[Tuple[str, Step]] = DRAFT_STEPS,
) -> StepResult:
    """
    Apply each step in order, stopping at the first one that fails.

    The returned result carries the name of the failing step and the draft as
    it stood before that step; the input draft is never modified.
    """
    current = draft or LoanApplication()
    for name, step in steps:
        result = step(current, data)
        if not result.ok:
            return replace(result, step=name)
        current = result.application
    return StepResult(current)
