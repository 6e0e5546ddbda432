import uuid
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def new_id():
    return uuid.uuid4().hex


def _iso(value):
    return value.isoformat() if value else None


class Plan(db.Model):
    __tablename__ = 'plans'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    completed = db.Column(db.Boolean, default=False, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    priority = db.Column(db.String(10), default='medium')  # low | medium | high
    # Parent reference is a plain column: rows may point at a parent that a
    # filtered read left out.
    parent_id = db.Column(db.String(32), nullable=True, index=True)
    order_index = db.Column(db.Integer, default=0, nullable=False)
    depth = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'due_date': _iso(self.due_date),
            'completed': bool(self.completed),
            'completed_at': _iso(self.completed_at),
            'priority': self.priority or 'medium',
            'parent_id': self.parent_id,
            'order_index': self.order_index or 0,
            'depth': self.depth or 0,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class BucketListItem(db.Model):
    __tablename__ = 'bucketlist'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(30), default='general')
    priority = db.Column(db.String(10), default='medium')
    progress = db.Column(db.Integer, default=0)  # 0-100
    target_date = db.Column(db.Date, nullable=True)
    tags = db.Column(db.String(300), nullable=True)  # comma separated
    completed = db.Column(db.Boolean, default=False, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    parent_id = db.Column(db.String(32), nullable=True, index=True)
    order_index = db.Column(db.Integer, default=0, nullable=False)
    depth = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'category': self.category or 'general',
            'priority': self.priority or 'medium',
            'progress': self.progress or 0,
            'target_date': _iso(self.target_date),
            'tags': [t for t in (self.tags or '').split(',') if t],
            'completed': bool(self.completed),
            'completed_at': _iso(self.completed_at),
            'parent_id': self.parent_id,
            'order_index': self.order_index or 0,
            'depth': self.depth or 0,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class Template(db.Model):
    """Daily routine template. Items are stored inline as a flat node list."""
    __tablename__ = 'templates'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    items = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, default=False, nullable=False)
    applied_from_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'items': list(self.items or []),
            'is_active': bool(self.is_active),
            'applied_from_date': _iso(self.applied_from_date),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class Todo(db.Model):
    __tablename__ = 'todos'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    template_id = db.Column(db.String(32), nullable=True, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    completed = db.Column(db.Boolean, default=False, nullable=False)
    order_index = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'template_id': self.template_id,
            'date': _iso(self.date),
            'title': self.title,
            'description': self.description,
            'completed': bool(self.completed),
            'order_index': self.order_index or 0,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class Note(db.Model):
    """Free-form memo."""
    __tablename__ = 'notes'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    content = db.Column(db.Text, nullable=False, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'content': self.content or '',
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }
