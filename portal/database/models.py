# portal/database/models.py

import sqlite3
import uuid
from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.engine import Engine

from portal import db
from portal.petitions.statuses import PetitionStatus


def utcnow():
    return datetime.now(timezone.utc)


def new_id():
    return str(uuid.uuid4())


def _isoformat(value):
    return value.isoformat() if value is not None else None


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    first_name = db.Column(db.Text, nullable=False)
    last_name = db.Column(db.Text, nullable=False)
    email = db.Column(db.String(254), unique=True, nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    national_id = db.Column(db.String(64), unique=True, nullable=False)
    password_hash = db.Column(db.String(200), nullable=False)  # Argon2id
    profile_pic_url = db.Column(db.Text, nullable=True)
    role = db.Column(db.String(20), nullable=False, default='petitioner')
    role_description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    petitions = db.relationship(
        'Petition', backref='submitted_by', lazy=True,
        cascade='all, delete-orphan', passive_deletes=True,
    )
    drafts = db.relationship(
        'PetitionDraft', backref='owner', lazy=True,
        cascade='all, delete-orphan', passive_deletes=True,
    )

    def to_dict(self):
        # password_hash never leaves the model
        return {
            'id': self.id,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'email': self.email,
            'phone': self.phone,
            'nationalId': self.national_id,
            'profilePicUrl': self.profile_pic_url,
            'role': self.role,
            'roleDescription': self.role_description,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<User {self.id} {self.email} ({self.role})>'


class Petition(db.Model):
    __tablename__ = 'submitted_petitions'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    submitted_by_user_id = db.Column(
        db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True,
    )
    petition_form_url = db.Column(db.Text, nullable=False)
    subject_matter = db.Column(db.Text, nullable=False)
    sources = db.Column(db.JSON, nullable=False, default=list)  # [{id, url, fileName?}]
    status = db.Column(db.String(64), nullable=False, default=PetitionStatus.PENDING.value, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    steps = db.relationship(
        'VerificationStep', backref='petition', lazy=True,
        cascade='all, delete-orphan', passive_deletes=True,
        order_by='VerificationStep.timestamp',
    )

    def to_dict(self, owner=None):
        data = {
            'id': self.id,
            'submittedByUserId': self.submitted_by_user_id,
            'petitionFormUrl': self.petition_form_url,
            'subjectMatter': self.subject_matter,
            'sources': list(self.sources or []),
            'status': self.status,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }
        if owner is not None:
            data['userFirstName'] = owner.first_name
            data['userLastName'] = owner.last_name
            data['userId'] = owner.id
        return data

    def __repr__(self):
        return f'<Petition {self.id} [{self.status}] by User {self.submitted_by_user_id}>'


class VerificationStep(db.Model):
    __tablename__ = 'verification_steps'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    petition_id = db.Column(
        db.String(36), db.ForeignKey('submitted_petitions.id', ondelete='CASCADE'), nullable=False, index=True,
    )
    title = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=True, default='')
    timestamp = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'petitionId': self.petition_id,
            'title': self.title,
            'description': self.description or '',
            'timestamp': _isoformat(self.timestamp),
        }

    def __repr__(self):
        return f'<VerificationStep {self.id} "{self.title}" on Petition {self.petition_id}>'


class PetitionDraft(db.Model):
    __tablename__ = 'petition_drafts'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    owner_user_id = db.Column(
        db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True,
    )
    petition_form_url = db.Column(db.Text, nullable=True)
    subject_matter = db.Column(db.Text, nullable=True)
    sources = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'ownerUserId': self.owner_user_id,
            'petitionFormUrl': self.petition_form_url,
            'subjectMatter': self.subject_matter,
            'sources': list(self.sources or []),
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }
