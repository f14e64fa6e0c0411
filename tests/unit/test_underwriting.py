"""Unit tests for the underwriting state machine"""

from dataclasses import replace
from datetime import datetime, timezone
import pytest
from finrisk_gateway.domain.exceptions import (
    EmptyJustificationError,
    InvalidInputError,
    InvalidTransitionError,
    PanNotVerifiedError,
    PolicyViolationError,
    VideoKycIncompleteError,
)
from finrisk_gateway.domain.models import (
    ApplicationStatus,
    AuditAction,
    Decision,
    LivenessResult,
    ProviderOutcome,
    RiskCategory,
    VerificationOutcome,
    VerificationStatus,
    VideoKycStatus,
)
from finrisk_gateway.domain.underwriting import (
    apply_aadhaar_verification,
    apply_pan_verification,
    attach_liveness_result,
    record_decision,
    record_verification_event,
    submit_application,
    update_video_kyc_status,
)

FIXED_NOW = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)


def _kyc_completed(application):
    application, _ = update_video_kyc_status(application, "ops", VideoKycStatus.IN_QUEUE)
    application, _ = update_video_kyc_status(application, "ops", VideoKycStatus.COMPLETED)
    return application


def test_submit_attaches_score_offer_and_analysis(verified_draft_application, clean_statement):
    assert verified_draft_application.credit_score is None
    assert verified_draft_application.loan_offer is None

    submitted, entry = submit_application(verified_draft_application, clean_statement, "SYSTEM", now=FIXED_NOW)

    assert submitted.status == ApplicationStatus.SUBMITTED
    assert submitted.statement_analysis == clean_statement
    assert submitted.credit_score.score == 890
    assert submitted.credit_score.category == RiskCategory.LOW
    assert submitted.loan_offer.amount == 500000
    assert entry.action == AuditAction.SUBMIT
    assert entry.application_id == verified_draft_application.id
    assert entry.timestamp == FIXED_NOW
    # Input draft is untouched
    assert verified_draft_application.status == ApplicationStatus.DRAFT


def test_submit_only_from_draft(submitted_application, clean_statement):
    with pytest.raises(InvalidTransitionError):
        submit_application(submitted_application, clean_statement, "SYSTEM")


@pytest.mark.parametrize(
    "pan_status", [VerificationStatus.PENDING, VerificationStatus.FAILED, VerificationStatus.SANDBOX_BYPASS]
)
def test_submit_requires_verified_pan(draft_application, clean_statement, pan_status):
    """An unverified PAN blocks submission and nothing is scored"""
    application = replace(draft_application, pan_status=pan_status)

    with pytest.raises(PanNotVerifiedError) as exc_info:
        submit_application(application, clean_statement, "SYSTEM")

    assert isinstance(exc_info.value, PolicyViolationError)
    assert exc_info.value.pan_status == pan_status.value
    assert application.status == ApplicationStatus.DRAFT
    assert application.credit_score is None


def test_sandbox_bypass_submits_only_when_sandbox_enabled(draft_application, clean_statement):
    application = replace(draft_application, pan_status=VerificationStatus.SANDBOX_BYPASS)

    submitted, entry = submit_application(application, clean_statement, "SYSTEM", allow_sandbox=True)

    assert submitted.status == ApplicationStatus.SUBMITTED
    assert submitted.pan_status == VerificationStatus.SANDBOX_BYPASS
    assert entry.action == AuditAction.SUBMIT


def test_pan_failure_after_verification_blocks_submit(draft_application, clean_statement):
    failed, _ = apply_pan_verification(
        draft_application, VerificationOutcome(ProviderOutcome.FAILED, details="PAN not found"), "KYC_PROVIDER"
    )
    with pytest.raises(PanNotVerifiedError):
        submit_application(failed, clean_statement, "SYSTEM")


def test_approve_requires_completed_video_kyc(submitted_application):
    """Approval before video KYC is a policy violation and changes nothing"""
    with pytest.raises(VideoKycIncompleteError) as exc_info:
        record_decision(submitted_application, "underwriter", "Strong profile", Decision.APPROVE)

    assert isinstance(exc_info.value, PolicyViolationError)
    assert not isinstance(exc_info.value, InvalidInputError)
    assert submitted_application.status == ApplicationStatus.SUBMITTED


@pytest.mark.parametrize(
    "kyc_status",
    [VideoKycStatus.NOT_STARTED, VideoKycStatus.IN_QUEUE, VideoKycStatus.PENDING, VideoKycStatus.FAILED],
)
def test_approve_blocked_for_every_incomplete_kyc_status(submitted_application, kyc_status):
    application = replace(submitted_application, video_kyc_status=kyc_status)
    with pytest.raises(VideoKycIncompleteError):
        record_decision(application, "underwriter", "Looks fine", Decision.APPROVE)


def test_approve_after_video_kyc(submitted_application):
    application = _kyc_completed(submitted_application)

    approved, entry = record_decision(
        application, "NBFC_INTERNAL_AUDITOR_V4", "  Salary verified, low DTI  ", Decision.APPROVE, now=FIXED_NOW
    )

    assert approved.status == ApplicationStatus.APPROVED
    assert entry.action == AuditAction.APPROVE
    assert entry.actor == "NBFC_INTERNAL_AUDITOR_V4"
    assert "Salary verified, low DTI" in entry.details
    assert entry.timestamp == FIXED_NOW


def test_reject_ignores_video_kyc(submitted_application):
    rejected, entry = record_decision(submitted_application, "underwriter", "Income unverifiable", Decision.REJECT)

    assert rejected.status == ApplicationStatus.REJECTED
    assert entry.action == AuditAction.REJECT
    assert "Income unverifiable" in entry.details


@pytest.mark.parametrize("decision", [Decision.APPROVE, Decision.REJECT])
@pytest.mark.parametrize("justification", ["", "   ", "\n\t", None])
def test_decision_requires_justification(submitted_application, decision, justification):
    application = _kyc_completed(submitted_application)
    with pytest.raises(EmptyJustificationError):
        record_decision(application, "underwriter", justification, decision)


def test_terminal_states_have_no_exits(submitted_application, clean_statement):
    rejected, _ = record_decision(submitted_application, "underwriter", "Policy decline", Decision.REJECT)

    with pytest.raises(InvalidTransitionError):
        record_decision(rejected, "underwriter", "Second thoughts", Decision.REJECT)
    with pytest.raises(InvalidTransitionError):
        submit_application(rejected, clean_statement, "SYSTEM")
    with pytest.raises(InvalidTransitionError):
        update_video_kyc_status(rejected, "ops", VideoKycStatus.IN_QUEUE)


def test_decision_cannot_skip_submitted(draft_application):
    application = replace(draft_application, video_kyc_status=VideoKycStatus.COMPLETED)
    with pytest.raises(InvalidTransitionError):
        record_decision(application, "underwriter", "Fast track", Decision.APPROVE)


def test_video_kyc_track_emits_audit_entries(submitted_application):
    queued, init_entry = update_video_kyc_status(submitted_application, "ops", VideoKycStatus.IN_QUEUE)
    failed, failed_entry = update_video_kyc_status(queued, "ops", VideoKycStatus.FAILED)
    retried, _ = update_video_kyc_status(failed, "ops", VideoKycStatus.IN_QUEUE)
    done, done_entry = update_video_kyc_status(retried, "ops", VideoKycStatus.COMPLETED)

    assert init_entry.action == AuditAction.VKYC_INIT
    assert failed_entry.action == AuditAction.VKYC_FAILED
    assert done_entry.action == AuditAction.VKYC_COMPLETED
    assert "COMPLETED" in done_entry.details
    assert done.status == ApplicationStatus.SUBMITTED


def test_video_kyc_rejects_invalid_moves(submitted_application):
    with pytest.raises(InvalidTransitionError):
        update_video_kyc_status(submitted_application, "ops", VideoKycStatus.COMPLETED)

    done = _kyc_completed(submitted_application)
    with pytest.raises(InvalidTransitionError):
        update_video_kyc_status(done, "ops", VideoKycStatus.FAILED)


def test_video_kyc_allowed_while_draft(draft_application):
    updated, entry = update_video_kyc_status(draft_application, "ops", VideoKycStatus.PENDING)
    assert updated.video_kyc_status == VideoKycStatus.PENDING
    assert updated.status == ApplicationStatus.DRAFT


def test_pan_verified_uses_name_on_record(draft_application):
    outcome = VerificationOutcome(ProviderOutcome.VERIFIED, name_on_record="ASHA VERMA")

    updated, entry = apply_pan_verification(draft_application, outcome, "KYC_PROVIDER")

    assert updated.pan_status == VerificationStatus.VERIFIED
    assert updated.full_name == "ASHA VERMA"
    assert entry.action == AuditAction.PAN_VERIFIED
    assert "ABCDE1234F" in entry.details


def test_pan_provider_unavailable_is_not_verified(draft_application):
    outcome = VerificationOutcome.unavailable("timeout after 5.0s")

    updated, entry = apply_pan_verification(draft_application, outcome, "KYC_PROVIDER")

    assert updated.pan_status == VerificationStatus.PENDING
    assert entry.action == AuditAction.VERIFICATION_UNAVAILABLE
    assert "timeout" in entry.details


def test_pan_sandbox_fallback_is_distinguishable(draft_application):
    outcome = VerificationOutcome.unavailable("connection refused")

    updated, entry = apply_pan_verification(draft_application, outcome, "KYC_SANDBOX_FALLBACK", allow_sandbox=True)

    assert updated.pan_status == VerificationStatus.SANDBOX_BYPASS
    assert updated.pan_status != VerificationStatus.VERIFIED
    assert entry.action == AuditAction.PAN_SANDBOX_BYPASS


def test_pan_failed(draft_application):
    updated, entry = apply_pan_verification(
        draft_application, VerificationOutcome(ProviderOutcome.FAILED, details="PAN not found"), "KYC_PROVIDER"
    )
    assert updated.pan_status == VerificationStatus.FAILED
    assert entry.action == AuditAction.PAN_FAILED


def test_aadhaar_verification_masks_number(draft_application):
    updated, entry = apply_aadhaar_verification(
        draft_application, VerificationOutcome(ProviderOutcome.VERIFIED), "UIDAI"
    )
    assert updated.aadhaar_status == VerificationStatus.VERIFIED
    assert entry.action == AuditAction.AADHAAR_VERIFIED
    assert "123456789012" not in entry.details
    assert "9012" in entry.details


def test_liveness_retake_replaces_result(draft_application):
    first, _ = attach_liveness_result(draft_application, LivenessResult(False, 20, "Screen glare"), "BIOMETRIC")
    second, entry = attach_liveness_result(first, LivenessResult(True, 95, "Live subject"), "BIOMETRIC")

    assert second.liveness_result == LivenessResult(True, 95, "Live subject")
    assert entry.action == AuditAction.LIVENESS_CHECKED
    assert "Liveness LIVE" in entry.details


def test_record_verification_event():
    entry = record_verification_event("app-1", "KYC_PROVIDER", AuditAction.PAN_VERIFIED, "ok", now=FIXED_NOW)
    assert entry.action == AuditAction.PAN_VERIFIED
    assert entry.timestamp == FIXED_NOW
    assert entry.id


@pytest.mark.parametrize(
    "application_id, actor, event_type",
    [
        ("", "actor", AuditAction.PAN_VERIFIED),
        ("app-1", "  ", AuditAction.PAN_VERIFIED),
        ("app-1", "actor", AuditAction.APPROVE),
        ("app-1", "actor", "NOT_AN_EVENT"),
    ],
)
def test_record_verification_event_rejects_malformed_input(application_id, actor, event_type):
    with pytest.raises(InvalidInputError):
        record_verification_event(application_id, actor, event_type, "details")
