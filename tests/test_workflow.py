from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError
from portal import db
from portal.database.models import Petition, VerificationStep, utcnow
from portal.petitions.petition_store import PetitionService
from portal.petitions.workflow import WorkflowService
from portal.results import ErrorKind


@pytest.fixture
def workflow(app):
    return WorkflowService()


@pytest.fixture
def petition(make_user):
    owner = make_user()
    return PetitionService().submit(owner.id, 'https://x/form.pdf', 'Road repairs').value


def test_status_and_step_written_together(workflow, petition):
    petition.updated_at = utcnow() - timedelta(hours=1)
    db.session.commit()
    before = db.session.get(Petition, petition.id).updated_at

    result = workflow.record_status_change(petition.id, 'UNDER_REVIEW', 'Clerk review started')

    assert result.ok
    assert result.value['petition'].status == 'Under Review'
    assert result.value['step'].title == 'Under Review'
    assert result.value['step'].description == 'Clerk review started'

    stored = db.session.get(Petition, petition.id)
    assert stored.status == 'Under Review'
    assert stored.updated_at > before
    steps = db.session.query(VerificationStep).filter_by(petition_id=petition.id).all()
    assert len(steps) == 1
    assert steps[0].timestamp == stored.updated_at


def test_note_defaults_to_status_label(workflow, petition):
    result = workflow.record_status_change(petition.id, 'Referred to Committee')
    assert result.value['step'].description == 'Referred to Committee'

    result = workflow.record_status_change(petition.id, 'APPROVED', '   ')
    assert result.value['step'].description == 'Approved'


def test_unknown_status_writes_nothing(workflow, petition):
    result = workflow.record_status_change(petition.id, 'Teleported', 'note')

    assert result.error is ErrorKind.VALIDATION
    assert db.session.get(Petition, petition.id).status == 'PENDING'
    assert db.session.query(VerificationStep).count() == 0


def test_unknown_petition_writes_nothing(workflow, petition):
    result = workflow.record_status_change('no-such-petition', 'Approved', 'note')

    assert result.error is ErrorKind.NOT_FOUND
    assert db.session.query(VerificationStep).count() == 0
    assert db.session.get(Petition, petition.id).status == 'PENDING'


def test_missing_petition_id(workflow):
    result = workflow.record_status_change('', 'Approved')
    assert result.error is ErrorKind.VALIDATION


def test_commit_failure_writes_neither(workflow, petition, monkeypatch):
    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session(), 'commit', failing_commit)
    result = workflow.record_status_change(petition.id, 'Approved', 'note')
    monkeypatch.undo()

    assert result.error is ErrorKind.TRANSPORT
    assert db.session.get(Petition, petition.id).status == 'PENDING'
    assert db.session.query(VerificationStep).count() == 0
