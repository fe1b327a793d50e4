# portal/authentication/rbac.py

from dataclasses import dataclass
from enum import Enum
from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_jwt_identity

# Role-Based Access Control: one role -> capability table, one decorator


class UserRole(Enum):
    PETITIONER = "petitioner"
    ADMIN = "admin"
    CLERK = "clerk"
    SPEAKER = "speaker"
    COMMITTEE = "committee"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class Permission(Enum):
    SUBMIT_PETITION = "submit_petition"
    VIEW_OWN_PETITIONS = "view_own_petitions"
    MANAGE_DRAFTS = "manage_drafts"
    UPLOAD_FILES = "upload_files"
    VIEW_ALL_PETITIONS = "view_all_petitions"
    CHANGE_PETITION_STATUS = "change_petition_status"
    VIEW_USERS = "view_users"
    MANAGE_USERS = "manage_users"
    VIEW_AUDIT_LOG = "view_audit_log"


# Role -> Permissions mapping
ROLE_PERMISSIONS = {
    UserRole.PETITIONER: [
        Permission.SUBMIT_PETITION,
        Permission.VIEW_OWN_PETITIONS,
        Permission.MANAGE_DRAFTS,
        Permission.UPLOAD_FILES,
    ],
    UserRole.CLERK: [
        Permission.VIEW_ALL_PETITIONS,
        Permission.CHANGE_PETITION_STATUS,
        Permission.UPLOAD_FILES,
    ],
    UserRole.ADMIN: [
        Permission.VIEW_ALL_PETITIONS,
        Permission.VIEW_USERS,
        Permission.MANAGE_USERS,
        Permission.VIEW_AUDIT_LOG,
    ],
    UserRole.SPEAKER: [
        Permission.VIEW_ALL_PETITIONS,
    ],
    UserRole.COMMITTEE: [
        Permission.VIEW_ALL_PETITIONS,
    ],
}


@dataclass(frozen=True)
class RequestActor:
    """The authenticated caller of a request, built from the access token claims."""
    user_id: str
    role: str

    def can(self, permission) -> bool:
        return RBACService().has_permission(self.role, permission)


class RBACService:
    def has_permission(self, user_role, permission):
        role = UserRole.parse(user_role)
        if role is None:
            return False
        if isinstance(permission, str):
            try:
                permission = Permission(permission)
            except ValueError:
                return False
        return permission in ROLE_PERMISSIONS.get(role, [])


def current_actor():
    verify_jwt_in_request()
    claims = get_jwt()
    return RequestActor(user_id=get_jwt_identity(), role=str(claims.get('role', '')).lower())


# Decorator for required permission; the view receives the caller as `actor`
def require_permission(permission=None):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            actor = current_actor()
            if permission is not None and not actor.can(permission):
                abort(403)
            return func(*args, actor=actor, **kwargs)
        return wrapper
    return decorator
