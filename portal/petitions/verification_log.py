# portal/petitions/verification_log.py

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from portal import db
from portal.database.errors import storage_failure
from portal.database.models import Petition, VerificationStep
from portal.results import ErrorKind, Result
from portal.security.input_validator import InputValidator

# Append-only processing history of a petition. Steps are never updated or deleted.


class VerificationStepService:
    def __init__(self, validator=None):
        self.validator = validator or InputValidator()

    def build_step(self, petition_id, title, description):
        """Validate and construct an unsaved step; raises ValueError on missing fields."""
        for name, value in (('petition_id', petition_id), ('title', title), ('description', description)):
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Missing required field: {name}")
        return VerificationStep(
            petition_id=petition_id,
            title=self.validator.sanitize_string(title, max_length=255),
            description=self.validator.sanitize_string(description, max_length=5000),
        )

    def append(self, petition_id, title, description):
        try:
            step = self.build_step(petition_id, title, description)
        except ValueError as e:
            current_app.logger.warning(f"Verification step rejected: {e}")
            return Result.failure(ErrorKind.VALIDATION, str(e))

        try:
            if db.session.get(Petition, petition_id) is None:
                return Result.failure(ErrorKind.NOT_FOUND, f"Petition {petition_id} not found.")
            db.session.add(step)
            db.session.commit()
        except SQLAlchemyError as e:
            return storage_failure(e, f"Recording step for petition {petition_id}")

        current_app.logger.info(f"Recorded step '{step.title}' for petition {petition_id}")
        return Result.success(step)

    def list_by_petition(self, petition_id):
        if not petition_id:
            return Result.failure(ErrorKind.VALIDATION, "A petition id is required.")
        try:
            steps = (
                db.session.query(VerificationStep)
                .filter(VerificationStep.petition_id == petition_id)
                .order_by(VerificationStep.timestamp)
                .all()
            )
        except SQLAlchemyError as e:
            return storage_failure(e, f"Listing steps for petition {petition_id}")
        return Result.success(steps)
