# portal/petitions/workflow.py

"""Status changes that keep a petition and its step history in agreement.

``PetitionService.update_status`` and ``VerificationStepService.append``
remain usable on their own. ``WorkflowService.record_status_change`` is
the path clerks use: it sets the new status and logs a matching step in
a single transaction, so either both rows are written or neither is.
"""

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from portal import db
from portal.database.errors import storage_failure
from portal.database.models import Petition, utcnow
from portal.petitions.statuses import PetitionStatus
from portal.petitions.verification_log import VerificationStepService
from portal.results import ErrorKind, Result


class WorkflowService:
    def __init__(self, step_service=None):
        self.step_service = step_service or VerificationStepService()

    def record_status_change(self, petition_id, new_status, note=None):
        status = PetitionStatus.parse(new_status)
        if status is None:
            return Result.failure(ErrorKind.VALIDATION, f"Unknown petition status: {new_status}")
        description = note if isinstance(note, str) and note.strip() else status.label
        try:
            step = self.step_service.build_step(petition_id, status.label, description)
        except ValueError as e:
            return Result.failure(ErrorKind.VALIDATION, str(e))

        try:
            petition = db.session.get(Petition, petition_id)
            if petition is None:
                return Result.failure(ErrorKind.NOT_FOUND, f"Petition {petition_id} not found.")
            now = utcnow()
            petition.status = status.value
            petition.updated_at = now
            step.timestamp = now
            db.session.add(step)
            db.session.commit()
        except SQLAlchemyError as e:
            return storage_failure(e, f"Changing status of petition {petition_id}")

        current_app.logger.info(f"Petition {petition_id} moved to {status.value}")
        return Result.success({'petition': petition, 'step': step})
