import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from tripfund.extensions import db


def new_id():
    return str(uuid.uuid4())


def utcnow():
    """Naive UTC timestamp (what the DateTime columns store)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def money(value):
    """Serialize a Numeric column value as a 2-decimal string."""
    if value is None:
        return None
    return str(Decimal(value).quantize(Decimal('0.01')))


def iso(value):
    return value.isoformat() if value is not None else None


class MemberRole(enum.Enum):
    OWNER = 'owner'
    ADMIN = 'admin'
    COLLECTOR = 'collector'


# ============================================================
# USER MODEL
# ============================================================
class User(UserMixin, db.Model):
    """
    A registered account.
    Users own projects, are members of projects and record payments.
    """
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    is_system_admin = db.Column(db.Boolean, default=False, nullable=False)
    email_verified = db.Column(db.Boolean, default=False, nullable=False)

    # sha256 digests of the one-time tokens, never the raw token
    verification_token = db.Column(db.String(64), nullable=True)
    verification_token_expires = db.Column(db.DateTime, nullable=True)
    password_reset_token = db.Column(db.String(64), nullable=True)
    password_reset_expires = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def set_password(self, password):
        """Hash and set the user's password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against stored hash."""
        return check_password_hash(self.password_hash, password)

    def to_summary(self):
        return {'id': self.id, 'name': self.name}

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'is_system_admin': self.is_system_admin,
            'email_verified': self.email_verified,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f'<User {self.email}>'


# ============================================================
# PROJECT MODEL
# ============================================================
class Project(db.Model):
    """
    Top-level collection unit.
    Exactly one OWNER membership exists for every project.
    """
    __tablename__ = 'projects'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    owner_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    owner = db.relationship('User')
    members = db.relationship('ProjectMember', backref='project',
                              cascade='all, delete-orphan')
    trips = db.relationship('Trip', backref='project',
                            cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'owner_id': self.owner_id,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Project {self.name}>'


# ============================================================
# PROJECT MEMBER MODEL
# ============================================================
class ProjectMember(db.Model):
    """Membership of a user in a project, with its role."""
    __tablename__ = 'project_members'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    project_id = db.Column(db.String(36),
                           db.ForeignKey('projects.id', ondelete='CASCADE'),
                           nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    role = db.Column(
        db.Enum(MemberRole, name='member_role', create_constraint=True,
                values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
    )
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship('User')

    __table_args__ = (
        db.UniqueConstraint('project_id', 'user_id', name='unique_project_member'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'role': self.role.value,
            'user': {
                'id': self.user.id,
                'name': self.user.name,
                'email': self.user.email,
            } if self.user else None,
        }

    def __repr__(self):
        return f'<ProjectMember user={self.user_id} project={self.project_id} role={self.role}>'


# ============================================================
# TRIP MODEL
# ============================================================
class Trip(db.Model):
    """One collection event inside a project."""
    __tablename__ = 'trips'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    project_id = db.Column(db.String(36),
                           db.ForeignKey('projects.id', ondelete='CASCADE'),
                           nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    total_cost = db.Column(db.Numeric(10, 2), default=Decimal('0'), nullable=False)
    expected_amount_per_person = db.Column(db.Numeric(10, 2), default=Decimal('0'),
                                           nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    participants = db.relationship('Participant', backref='trip',
                                   cascade='all, delete-orphan')
    payments = db.relationship('Payment', backref='trip',
                               cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'name': self.name,
            'description': self.description,
            'start_date': iso(self.start_date),
            'end_date': iso(self.end_date),
            'total_cost': money(self.total_cost),
            'expected_amount_per_person': money(self.expected_amount_per_person),
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Trip {self.name}>'


# ============================================================
# PARTICIPANT MODEL
# ============================================================
class Participant(db.Model):
    """
    A person expected to pay into a trip.
    Not necessarily a platform user.
    """
    __tablename__ = 'participants'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    trip_id = db.Column(db.String(36),
                        db.ForeignKey('trips.id', ondelete='CASCADE'),
                        nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(100), nullable=True)
    expected_amount = db.Column(db.Numeric(10, 2), default=Decimal('0'), nullable=False)
    created_by = db.Column(db.String(36),
                           db.ForeignKey('users.id', ondelete='SET NULL'),
                           nullable=True)
    updated_by = db.Column(db.String(36),
                           db.ForeignKey('users.id', ondelete='SET NULL'),
                           nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    created_by_user = db.relationship('User', foreign_keys=[created_by])
    updated_by_user = db.relationship('User', foreign_keys=[updated_by])
    payments = db.relationship('Payment', backref='participant',
                               cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'trip_id': self.trip_id,
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'expected_amount': money(self.expected_amount),
            'created_by': self.created_by,
            'updated_by': self.updated_by,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Participant {self.name}>'


# ============================================================
# PAYMENT MODEL
# ============================================================
class Payment(db.Model):
    """
    A contribution collected from a participant.

    trip_id duplicates participant.trip_id and is always copied from
    the participant when the payment is written.
    """
    __tablename__ = 'payments'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    participant_id = db.Column(db.String(36),
                               db.ForeignKey('participants.id', ondelete='CASCADE'),
                               nullable=False, index=True)
    trip_id = db.Column(db.String(36),
                        db.ForeignKey('trips.id', ondelete='CASCADE'),
                        nullable=False, index=True)
    collector_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_date = db.Column(db.DateTime, default=utcnow, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    collector = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'participant_id': self.participant_id,
            'trip_id': self.trip_id,
            'collector_id': self.collector_id,
            'amount': money(self.amount),
            'payment_date': iso(self.payment_date),
            'notes': self.notes,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Payment participant={self.participant_id} amount={self.amount}>'
