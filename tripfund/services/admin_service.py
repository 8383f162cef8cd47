"""
ADMIN SERVICE
=============

System-administrator surface:
- List users / projects
- System statistics
- Grant / revoke the system-admin flag

Every function checks the caller's is_system_admin flag first.
Project roles play no part here.
"""

import structlog
from sqlalchemy import func
from sqlalchemy.orm import joinedload

from tripfund.extensions import db
from tripfund.models import (
    MemberRole, Participant, Payment, Project, ProjectMember, Trip, User, money, utcnow
)
from tripfund.services.authorization_service import require_system_admin
from tripfund.services.errors import NotFoundError, ValidationError
from tripfund.services.report_service import sum_amounts

log = structlog.get_logger(__name__)

TREND_MONTHS = 6
RECENT_LIMIT = 5


def _count_by(column, key_column):
    rows = db.session.query(key_column, func.count(column)).group_by(key_column).all()
    return {key: count for key, count in rows}


def list_users(admin_id):
    require_system_admin(admin_id)
    users = User.query.order_by(User.created_at.desc()).all()
    return [u.to_dict() for u in users]


def list_projects(admin_id):
    """All projects with owner, member count and trip count."""
    require_system_admin(admin_id)

    projects = Project.query.order_by(Project.created_at.desc()).all()

    owners = {
        m.project_id: m.user
        for m in ProjectMember.query.options(joinedload(ProjectMember.user))
        .filter_by(role=MemberRole.OWNER).all()
    }
    member_counts = _count_by(ProjectMember.id, ProjectMember.project_id)
    trip_counts = _count_by(Trip.id, Trip.project_id)

    result = []
    for project in projects:
        owner = owners.get(project.id)
        data = project.to_dict()
        data.update({
            'owner': {'id': owner.id, 'name': owner.name, 'email': owner.email}
            if owner else None,
            'member_count': member_counts.get(project.id, 0),
            'trip_count': trip_counts.get(project.id, 0),
        })
        result.append(data)
    return result


def _months_back(now, months):
    """First day of the month `months` before now's month."""
    year, month = now.year, now.month - months
    while month <= 0:
        month += 12
        year -= 1
    return now.replace(year=year, month=month, day=1, hour=0, minute=0,
                       second=0, microsecond=0)


def get_system_stats(admin_id):
    require_system_admin(admin_id)

    all_amounts = db.session.query(Payment.amount).all()
    total_collected = sum_amounts(all_amounts)

    recent_payments = Payment.query.options(
        joinedload(Payment.collector),
        joinedload(Payment.participant),
    ).order_by(Payment.created_at.desc()).limit(RECENT_LIMIT).all()

    recent_users = User.query.order_by(User.created_at.desc()).limit(RECENT_LIMIT).all()

    since = _months_back(utcnow(), TREND_MONTHS)
    trend_rows = Payment.query.filter(
        Payment.created_at >= since
    ).order_by(Payment.created_at.asc()).all()

    monthly = {}
    for payment in trend_rows:
        key = (payment.created_at.year, payment.created_at.month)
        monthly.setdefault(key, []).append(payment)

    return {
        'stats': {
            'user_count': User.query.count(),
            'project_count': Project.query.count(),
            'trip_count': Trip.query.count(),
            'participant_count': Participant.query.count(),
            'total_collected': money(total_collected),
        },
        'recent_activity': {
            'payments': [
                {
                    'id': p.id,
                    'amount': money(p.amount),
                    'created_at': p.created_at.isoformat() if p.created_at else None,
                    'participant': {'id': p.participant.id, 'name': p.participant.name},
                    'collector': p.collector.to_summary(),
                }
                for p in recent_payments
            ],
            'users': [
                {
                    'id': u.id,
                    'name': u.name,
                    'email': u.email,
                    'is_system_admin': u.is_system_admin,
                    'created_at': u.created_at.isoformat() if u.created_at else None,
                }
                for u in recent_users
            ],
        },
        'monthly_trends': [
            {'year': year, 'month': month, 'total': money(sum_amounts(payments))}
            for (year, month), payments in sorted(monthly.items())
        ],
    }


def _set_system_admin(admin_id, user_id, value):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    user.is_system_admin = value
    db.session.commit()

    log.info("system_admin_changed", user_id=user_id, is_system_admin=value,
             changed_by=admin_id)
    return user.to_dict()


def grant_system_admin(admin_id, user_id):
    require_system_admin(admin_id)
    return _set_system_admin(admin_id, user_id, True)


def revoke_system_admin(admin_id, user_id):
    require_system_admin(admin_id)

    if user_id == admin_id:
        raise ValidationError("You cannot remove administrator privileges from yourself")

    return _set_system_admin(admin_id, user_id, False)
