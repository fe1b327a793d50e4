# portal/petitions/drafts.py

# Server-side petition drafts, saved and loaded explicitly by id

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from portal import db
from portal.database.errors import storage_failure
from portal.database.models import PetitionDraft, utcnow
from portal.petitions.petition_store import PetitionService
from portal.results import ErrorKind, Result
from portal.security.input_validator import InputValidator

_UNSET = object()


class DraftService:
    def __init__(self, petition_service=None, validator=None):
        self.validator = validator or InputValidator()
        self.petition_service = petition_service or PetitionService(self.validator)

    def save_draft(self, owner_user_id, draft_id=None, petition_form_url=_UNSET,
                   subject_matter=_UNSET, sources=_UNSET):
        if not owner_user_id:
            return Result.failure(ErrorKind.VALIDATION, "A signed-in user is required to save a draft.")
        try:
            changes = self._validated_changes(petition_form_url, subject_matter, sources)
        except ValueError as e:
            return Result.failure(ErrorKind.VALIDATION, str(e))

        if draft_id:
            found = self.load_draft(owner_user_id, draft_id)
            if not found:
                return found
            draft = found.value
        else:
            draft = PetitionDraft(owner_user_id=owner_user_id, sources=[])
            db.session.add(draft)

        for name, value in changes.items():
            setattr(draft, name, value)
        draft.updated_at = utcnow()
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            return storage_failure(e, "Saving petition draft")
        return Result.success(draft)

    def load_draft(self, owner_user_id, draft_id):
        try:
            draft = db.session.get(PetitionDraft, draft_id) if draft_id else None
        except SQLAlchemyError as e:
            return storage_failure(e, f"Loading draft {draft_id}")
        # Another user's draft is reported exactly like a missing one
        if draft is None or draft.owner_user_id != owner_user_id:
            return Result.failure(ErrorKind.NOT_FOUND, f"Draft {draft_id} not found.")
        return Result.success(draft)

    def list_drafts(self, owner_user_id):
        try:
            drafts = (
                db.session.query(PetitionDraft)
                .filter(PetitionDraft.owner_user_id == owner_user_id)
                .order_by(PetitionDraft.updated_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            return storage_failure(e, "Listing drafts")
        return Result.success(drafts)

    def discard_draft(self, owner_user_id, draft_id):
        found = self.load_draft(owner_user_id, draft_id)
        if not found:
            return found
        try:
            db.session.delete(found.value)
            db.session.commit()
        except SQLAlchemyError as e:
            return storage_failure(e, f"Discarding draft {draft_id}")
        return Result.success(None)

    def submit_draft(self, owner_user_id, draft_id):
        found = self.load_draft(owner_user_id, draft_id)
        if not found:
            return found
        draft = found.value
        if not draft.petition_form_url or not draft.subject_matter:
            return Result.failure(ErrorKind.VALIDATION, "Upload the signed petition form and enter the subject matter first.")

        submitted = self.petition_service.submit(
            owner_user_id, draft.petition_form_url, draft.subject_matter, list(draft.sources or []),
        )
        if not submitted:
            return submitted

        discarded = self.discard_draft(owner_user_id, draft_id)
        if not discarded:
            current_app.logger.warning(f"Draft {draft_id} kept after submitting petition {submitted.value.id}")
        return submitted

    def _validated_changes(self, petition_form_url, subject_matter, sources):
        changes = {}
        if petition_form_url is not _UNSET:
            if petition_form_url and not self.validator.validate_url(petition_form_url):
                raise ValueError("Please enter a valid URL.")
            changes['petition_form_url'] = petition_form_url or None
        if subject_matter is not _UNSET:
            if subject_matter is not None and not isinstance(subject_matter, str):
                raise ValueError("Subject matter must be text.")
            changes['subject_matter'] = (
                self.validator.sanitize_string(subject_matter, max_length=2000) or None
                if subject_matter else None
            )
        if sources is not _UNSET:
            changes['sources'] = self.validator.normalize_sources(sources)
        return changes
