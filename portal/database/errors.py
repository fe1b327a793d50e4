# portal/database/errors.py

from flask import current_app
from sqlalchemy.exc import IntegrityError

from portal import db
from portal.results import ErrorKind, Result


def storage_failure(error, action, conflict_message=None):
    """Roll back the session and turn a SQLAlchemy error into a failed Result."""
    db.session.rollback()
    if isinstance(error, IntegrityError):
        current_app.logger.warning(f"{action}: constraint violation: {error.orig}")
        return Result.failure(ErrorKind.CONFLICT, conflict_message or f"{action} violates a uniqueness or reference constraint.")
    current_app.logger.error(f"{action}: database error: {error}")
    return Result.failure(ErrorKind.TRANSPORT, f"{action} failed, please try again.")
