import uuid
from datetime import datetime, UTC

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy

# SQLAlchemy instance
db = SQLAlchemy()

TASK_STATUSES = ('todo', 'inProgress', 'done')


def new_id():
    return uuid.uuid4().hex


def utcnow():
    # SQLite drops tzinfo, so timestamps are stored as naive UTC everywhere
    return datetime.now(UTC).replace(tzinfo=None)


def iso(dt):
    return dt.isoformat(timespec='milliseconds') + 'Z' if dt else None


project_members = db.Table(
    'project_members',
    db.Column('project_id', db.String(32), db.ForeignKey('projects.id', ondelete='CASCADE'), primary_key=True),
    db.Column('user_id', db.String(32), db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
)


class User(db.Model, UserMixin):
    __tablename__ = 'users'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_public(self):
        return {'id': self.id, 'email': self.email, 'fullName': self.full_name}


class Project(db.Model):
    __tablename__ = 'projects'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    created_by_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    created_by = db.relationship('User', foreign_keys=[created_by_id], lazy='joined')
    members = db.relationship('User', secondary=project_members, lazy='selectin', order_by='User.created_at')
    tasks = db.relationship('Task', back_populates='project', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'createdBy': self.created_by.to_public(),
            'members': [m.to_public() for m in self.members],
            'createdAt': iso(self.created_at),
            'updatedAt': iso(self.updated_at),
        }


class Task(db.Model):
    __tablename__ = 'tasks'
    __table_args__ = (
        db.Index('ix_tasks_project_status', 'project_id', 'status'),
        db.Index('ix_tasks_project_dates', 'project_id', 'start_date', 'end_date'),
    )
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    status = db.Column(db.String(20), nullable=False, default='todo')
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    assigned_to_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False)
    created_by_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False)
    project_id = db.Column(db.String(32), db.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    assigned_to = db.relationship('User', foreign_keys=[assigned_to_id], lazy='joined')
    created_by = db.relationship('User', foreign_keys=[created_by_id], lazy='joined')
    project = db.relationship('Project', back_populates='tasks')

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'startDate': iso(self.start_date),
            'endDate': iso(self.end_date),
            'assignedTo': self.assigned_to.to_public() if self.assigned_to else None,
            'createdBy': self.created_by.to_public() if self.created_by else None,
            'projectId': self.project_id,
            'createdAt': iso(self.created_at),
            'updatedAt': iso(self.updated_at),
        }
