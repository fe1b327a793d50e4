# portal/petitions/petition_store.py

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from portal import db
from portal.database.errors import storage_failure
from portal.database.models import Petition, User, utcnow
from portal.petitions.statuses import PetitionStatus
from portal.results import ErrorKind, Result
from portal.security.input_validator import InputValidator

# Submitted petitions: creation, lookup by id/owner/status, status updates


class PetitionService:
    def __init__(self, validator=None):
        self.validator = validator or InputValidator()

    def submit(self, owner_user_id, petition_form_url, subject_matter, sources=None):
        if not owner_user_id:
            current_app.logger.warning("Petition submission without an owner id")
            return Result.failure(ErrorKind.VALIDATION, "A signed-in user is required to submit a petition.")
        if not self.validator.validate_url(petition_form_url):
            return Result.failure(ErrorKind.VALIDATION, "A valid petition form URL is required.")
        if not isinstance(subject_matter, str) or not subject_matter.strip():
            return Result.failure(ErrorKind.VALIDATION, "Subject matter is required.")
        try:
            normalized_sources = self.validator.normalize_sources(sources)
            subject = self.validator.sanitize_string(subject_matter, max_length=2000)
        except ValueError as e:
            return Result.failure(ErrorKind.VALIDATION, str(e))

        try:
            owner = db.session.get(User, owner_user_id)
            if owner is None:
                return Result.failure(ErrorKind.NOT_FOUND, f"User {owner_user_id} not found.")
            petition = Petition(
                submitted_by_user_id=owner.id,
                petition_form_url=petition_form_url,
                subject_matter=subject,
                sources=normalized_sources,
                status=PetitionStatus.PENDING.value,
            )
            db.session.add(petition)
            db.session.commit()
        except SQLAlchemyError as e:
            return storage_failure(e, "Submitting petition")

        current_app.logger.info(f"Petition {petition.id} submitted by user {owner_user_id}")
        return Result.success(petition)

    def list_by_owner(self, user_id):
        if not user_id:
            return Result.success([])
        return self._list_views(Petition.submitted_by_user_id == user_id, f"owner {user_id}")

    def list_by_status(self, status):
        parsed = PetitionStatus.parse(status)
        if parsed is None:
            return Result.failure(ErrorKind.VALIDATION, f"Unknown petition status: {status}")
        return self._list_views(Petition.status == parsed.value, f"status {parsed.value}")

    def list_all(self):
        return self._list_views(None, "all petitions")

    def get_by_id(self, petition_id):
        if not petition_id:
            return Result.failure(ErrorKind.VALIDATION, "A petition id is required.")
        try:
            row = (
                self._joined_query()
                .filter(Petition.id == petition_id)
                .first()
            )
        except SQLAlchemyError as e:
            return storage_failure(e, f"Loading petition {petition_id}")
        if row is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"Petition {petition_id} not found.")
        petition, owner = row
        return Result.success(petition.to_dict(owner=owner))

    def update_status(self, petition_id, new_status):
        parsed = PetitionStatus.parse(new_status)
        if parsed is None:
            return Result.failure(ErrorKind.VALIDATION, f"Unknown petition status: {new_status}")
        try:
            petition = db.session.get(Petition, petition_id) if petition_id else None
            if petition is None:
                return Result.failure(ErrorKind.NOT_FOUND, f"Petition {petition_id} not found.")
            petition.status = parsed.value
            petition.updated_at = utcnow()
            db.session.commit()
        except SQLAlchemyError as e:
            return storage_failure(e, f"Updating status of petition {petition_id}")

        current_app.logger.info(f"Petition {petition_id} status set to {parsed.value}")
        return Result.success(petition)

    def _joined_query(self):
        return (
            db.session.query(Petition, User)
            .outerjoin(User, Petition.submitted_by_user_id == User.id)
        )

    def _list_views(self, criterion, description):
        query = self._joined_query()
        if criterion is not None:
            query = query.filter(criterion)
        try:
            rows = query.order_by(Petition.created_at).all()
        except SQLAlchemyError as e:
            return storage_failure(e, f"Listing petitions for {description}")
        current_app.logger.debug(f"Retrieved {len(rows)} petitions for {description}")
        return Result.success([petition.to_dict(owner=owner) for petition, owner in rows])
