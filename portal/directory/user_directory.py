# portal/directory/user_directory.py

"""Account records and role assignments.

Registration hashes the password before anything is persisted; the
plaintext is never stored or logged. Authentication answers unknown
emails and wrong passwords with the same failure so callers cannot
tell which accounts exist.
"""

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from portal import db
from portal.authentication.rbac import UserRole
from portal.database.errors import storage_failure
from portal.database.models import User, utcnow
from portal.encryption.password_hashing import PasswordHashingService
from portal.results import ErrorKind, Result
from portal.security.input_validator import InputValidator

INVALID_CREDENTIALS = "Invalid email or password."

UPDATABLE_FIELDS = {
    'first_name', 'last_name', 'email', 'phone', 'national_id',
    'profile_pic_url', 'role', 'role_description', 'password',
}


class UserDirectoryService:
    def __init__(self, password_service=None, validator=None):
        self.password_service = password_service or PasswordHashingService()
        self.validator = validator or InputValidator()
        self._dummy_hash = None

    def register(self, first_name, last_name, email, phone, national_id, password,
                 profile_pic_url=None, role='petitioner', role_description='public'):
        user_role = UserRole.parse(role)
        if user_role is None:
            return Result.failure(ErrorKind.VALIDATION, f"Unknown role: {role}")
        try:
            fields = self.validator.validate_registration({
                'first_name': first_name,
                'last_name': last_name,
                'email': email,
                'phone': phone,
                'national_id': national_id,
                'profile_pic_url': profile_pic_url,
            })
            password_hash = self.password_service.hash_password(password)
        except ValueError as e:
            return Result.failure(ErrorKind.VALIDATION, str(e))

        user = User(
            first_name=fields['first_name'],
            last_name=fields['last_name'],
            email=fields['email'],
            phone=fields['phone'],
            national_id=fields['national_id'],
            password_hash=password_hash,
            profile_pic_url=fields['profile_pic_url'],
            role=user_role.value,
            role_description=self._clean_description(role_description),
        )
        try:
            db.session.add(user)
            db.session.commit()
        except SQLAlchemyError as e:
            return storage_failure(e, "Registration", "An account with this email or national ID already exists.")

        current_app.logger.info(f"Registered user {user.id} with role {user.role}")
        return Result.success(user)

    def authenticate(self, email, password):
        if not isinstance(email, str) or not isinstance(password, str):
            return Result.failure(ErrorKind.UNAUTHENTICATED, INVALID_CREDENTIALS)
        try:
            user = db.session.query(User).filter_by(email=email.strip().lower()).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Login lookup failed: {e}")
            return Result.failure(ErrorKind.TRANSPORT, "Something went wrong. Please try again.")

        if user is None:
            # Spend the same hashing effort as a real comparison
            self.password_service.verify_password(password, self._get_dummy_hash())
            return Result.failure(ErrorKind.UNAUTHENTICATED, INVALID_CREDENTIALS)
        if not self.password_service.verify_password(password, user.password_hash):
            return Result.failure(ErrorKind.UNAUTHENTICATED, INVALID_CREDENTIALS)
        if self.password_service.needs_rehash(user.password_hash):
            self._rehash(user, password)

        return Result.success({
            'id': user.id,
            'email': user.email,
            'role': user.role,
            'role_description': user.role_description,
            'first_name': user.first_name,
            'last_name': user.last_name,
        })

    def list_by_role(self, role):
        if not isinstance(role, str) or not role.strip():
            return Result.success([])
        user_role = UserRole.parse(role)
        if user_role is None:
            return Result.failure(ErrorKind.VALIDATION, f"Unknown role: {role}")
        try:
            users = db.session.query(User).filter_by(role=user_role.value).all()
        except SQLAlchemyError as e:
            return storage_failure(e, f"Listing users with role {user_role.value}")
        current_app.logger.debug(f"Found {len(users)} users with role {user_role.value}")
        return Result.success(users)

    def list_all(self):
        try:
            return Result.success(db.session.query(User).order_by(User.created_at).all())
        except SQLAlchemyError as e:
            return storage_failure(e, "Listing users")

    def get_by_id(self, user_id):
        if not user_id:
            return Result.failure(ErrorKind.VALIDATION, "A user id is required.")
        try:
            user = db.session.get(User, user_id)
        except SQLAlchemyError as e:
            return storage_failure(e, f"Loading user {user_id}")
        if user is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"User {user_id} not found.")
        return Result.success(user)

    def get_by_email(self, email):
        if not isinstance(email, str) or not email.strip():
            return Result.failure(ErrorKind.VALIDATION, "An email is required.")
        try:
            user = db.session.query(User).filter_by(email=email.strip().lower()).first()
        except SQLAlchemyError as e:
            return storage_failure(e, "Loading user by email")
        if user is None:
            return Result.failure(ErrorKind.NOT_FOUND, "User not found.")
        return Result.success(user)

    def update(self, user_id, fields):
        if not isinstance(fields, dict):
            return Result.failure(ErrorKind.VALIDATION, "Update fields must be an object.")
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            return Result.failure(ErrorKind.VALIDATION, f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        found = self.get_by_id(user_id)
        if not found:
            return found
        user = found.value

        try:
            changes = self._validated_changes(user, fields)
        except ValueError as e:
            return Result.failure(ErrorKind.VALIDATION, str(e))

        for name, value in changes.items():
            setattr(user, name, value)
        user.updated_at = utcnow()
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            return storage_failure(e, f"Updating user {user_id}", "Another account already uses this email or national ID.")
        return Result.success(user)

    def delete(self, user_id):
        found = self.get_by_id(user_id)
        if not found:
            return found
        try:
            db.session.delete(found.value)
            db.session.commit()
        except SQLAlchemyError as e:
            return storage_failure(e, f"Deleting user {user_id}")
        current_app.logger.info(f"Deleted user {user_id} and their petitions")
        return Result.success(None)

    def _validated_changes(self, user, fields):
        # Validate the merged record so partial updates obey the registration rules
        merged = self.validator.validate_registration({
            'first_name': fields.get('first_name', user.first_name),
            'last_name': fields.get('last_name', user.last_name),
            'email': fields.get('email', user.email),
            'phone': fields.get('phone', user.phone),
            'national_id': fields.get('national_id', user.national_id),
            'profile_pic_url': fields.get('profile_pic_url', user.profile_pic_url),
        })
        changes = {name: merged[name] for name in merged if name in fields}
        if 'role' in fields:
            role = UserRole.parse(fields['role'])
            if role is None:
                raise ValueError(f"Unknown role: {fields['role']}")
            changes['role'] = role.value
        if 'role_description' in fields:
            changes['role_description'] = self._clean_description(fields['role_description'])
        if 'password' in fields:
            changes['password_hash'] = self.password_service.hash_password(fields['password'])
        return changes

    def _rehash(self, user, password):
        # Upgrade hashes made with older Argon2 parameters; a failed write keeps the old hash
        try:
            user.password_hash = self.password_service.hash_password(password)
            db.session.commit()
        except (ValueError, SQLAlchemyError) as e:
            db.session.rollback()
            current_app.logger.error(f"Password rehash for user {user.id} failed: {e}")
            return
        current_app.logger.info(f"Rehashed password for user {user.id}")

    def _clean_description(self, description):
        if description is None:
            return None
        return self.validator.sanitize_string(str(description), max_length=500)

    def _get_dummy_hash(self):
        if self._dummy_hash is None:
            self._dummy_hash = self.password_service.hash_password(
                self.password_service.generate_secure_password()
            )
        return self._dummy_hash
