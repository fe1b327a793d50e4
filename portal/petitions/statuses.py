# portal/petitions/statuses.py

# Single status vocabulary for submitted petitions. Members carry the label
# that is stored and shown; parsing also accepts the upper-case tokens used
# by older records (UNDER_REVIEW, IN_PROGRESS, ...) and any case variant.

import re
from enum import Enum


class PetitionStatus(str, Enum):
    PENDING = "PENDING"
    SUBMITTED = "Submitted"
    UNDER_REVIEW = "Under Review"
    ACCEPTED_FORWARDED_TO_SPEAKER = "Application Accepted - Forwarded to Speaker"
    RETURNED_FOR_AMENDMENT = "Application Returned for Amendment"
    FORWARDED_TO_SENATE_CLERK = "Application Forwarded to Clerk of the Senate"
    FORWARDED = "Forwarded"
    REFERRED_TO_COMMITTEE = "Referred to Committee"
    IN_PROGRESS = "In Progress"
    AWAITING_RESPONSE = "Awaiting Response"
    ON_HOLD = "On Hold"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    RESOLVED = "Resolved"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    WITHDRAWN = "Withdrawn"
    ARCHIVED = "Archived"

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        key = _normalize(value)
        if not key:
            return None
        for member in cls:
            if key in (_normalize(member.name), _normalize(member.value)):
                return member
        return None

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value):
        """Return the matching member or None for unknown/empty input."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def choices(cls):
        return [member.value for member in cls]


def _normalize(text):
    return re.sub(r'[^a-z0-9]+', ' ', text.lower()).strip()
