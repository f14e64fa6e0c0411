"""Unit tests for the application and audit repositories (sqlite)"""

from dataclasses import replace
import pytest
from finrisk_gateway.domain.exceptions import ApplicationNotFoundError, ConcurrentModificationError
from finrisk_gateway.domain.models import ApplicationStatus, AuditAction, AuditLogEntry
from finrisk_gateway.infrastructure.database.repositories import ApplicationRepository, AuditLogRepository


def test_add_and_get_round_trip(db, submitted_application):
    repo = ApplicationRepository(db)
    repo.add(submitted_application)
    db.commit()

    loaded = repo.get(submitted_application.id)

    assert loaded.status == ApplicationStatus.SUBMITTED
    assert loaded.credit_score == submitted_application.credit_score
    assert loaded.loan_offer == submitted_application.loan_offer
    assert loaded.statement_analysis == submitted_application.statement_analysis
    assert loaded.version == 0


def test_get_unknown_application(db):
    with pytest.raises(ApplicationNotFoundError):
        ApplicationRepository(db).get("missing")


def test_save_bumps_version(db, draft_application):
    repo = ApplicationRepository(db)
    repo.add(draft_application)
    db.commit()

    saved = repo.save(replace(draft_application, full_name="ASHA VERMA"))
    db.commit()

    assert saved.version == 1
    loaded = repo.get(draft_application.id)
    assert loaded.full_name == "ASHA VERMA"
    assert loaded.version == 1


def test_stale_save_is_rejected(db, draft_application):
    """Second writer holding the old version loses"""
    repo = ApplicationRepository(db)
    repo.add(draft_application)
    db.commit()

    repo.save(replace(draft_application, full_name="First Writer"))
    db.commit()

    with pytest.raises(ConcurrentModificationError):
        repo.save(replace(draft_application, full_name="Second Writer"))
    db.rollback()

    assert repo.get(draft_application.id).full_name == "First Writer"


def test_list_applications_filters_by_status(db, draft_application, submitted_application):
    repo = ApplicationRepository(db)
    repo.add(replace(draft_application, id="app-draft"))
    repo.add(submitted_application)
    db.commit()

    submitted = repo.list_applications(status=ApplicationStatus.SUBMITTED)

    assert [a.id for a in submitted] == [submitted_application.id]
    assert len(repo.list_applications()) == 2


def test_audit_entries_newest_first(db):
    repo = AuditLogRepository(db)
    for action in (AuditAction.PAN_VERIFIED, AuditAction.SUBMIT, AuditAction.VKYC_INIT):
        repo.append(AuditLogEntry(application_id="app-1", action=action, actor="SYSTEM", details=action.value))
    repo.append(AuditLogEntry(application_id="app-2", action=AuditAction.SUBMIT, actor="SYSTEM", details="other"))
    db.commit()

    entries = repo.list_entries(application_id="app-1")

    assert [e.action for e in entries] == [AuditAction.VKYC_INIT, AuditAction.SUBMIT, AuditAction.PAN_VERIFIED]
    assert len(repo.list_entries()) == 4
    assert repo.list_entries()[0].application_id == "app-2"


def test_audit_repository_has_no_mutators():
    assert not hasattr(AuditLogRepository, "update")
    assert not hasattr(AuditLogRepository, "delete")
