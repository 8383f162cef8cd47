"""
MEMBERSHIP SERVICE
==================

Handles:
- Listing project members
- Adding members by email (admin or collector)
- Changing a member's role
- Removing members

The OWNER membership is created with the project and can never be
changed or removed here. Owner protection is checked before the
caller's role, so such attempts always fail with OwnerProtectedError.
"""

import structlog
from sqlalchemy.orm import joinedload

from tripfund.extensions import db
from tripfund.models import MemberRole, ProjectMember, User
from tripfund.services.authorization_service import (
    CAPABILITIES, Action, authorize, require_role, resolve_access
)
from tripfund.services.errors import (
    ConflictError, NotFoundError, OwnerProtectedError, TripfundError, ValidationError
)
from tripfund.services.validation import is_owner_role, parse_assignable_role

log = structlog.get_logger(__name__)


class MembershipError(TripfundError):
    """Membership operation failed"""
    status_code = 500
    kind = 'membership_error'


def _get_project_member(project_id, member_id):
    member = ProjectMember.query.options(
        joinedload(ProjectMember.user)
    ).filter_by(id=member_id, project_id=project_id).first()

    if not member:
        raise NotFoundError("Member not found")
    return member


# ============================================================
# LIST MEMBERS
# ============================================================

def list_members(user_id, project_id):
    authorize(user_id, Action.VIEW_PROJECT, project_id=project_id)

    members = ProjectMember.query.options(
        joinedload(ProjectMember.user)
    ).filter_by(project_id=project_id).order_by(ProjectMember.created_at.asc()).all()

    return [m.to_dict() for m in members]


# ============================================================
# ADD MEMBER
# ============================================================

def add_member(user_id, project_id, email, role):
    """
    Add an existing user to the project.

    - role "owner" is never assignable (OwnerProtectedError)
    - caller must be owner/admin
    - target email must belong to a registered user
    - role must be admin or collector
    - target must not already be a member
    """
    access = resolve_access(user_id, project_id=project_id)

    if is_owner_role(role):
        raise OwnerProtectedError("A project can only have one owner")

    require_role(access, CAPABILITIES[Action.MANAGE_MEMBERS])

    if not email or not isinstance(email, str):
        raise ValidationError("email is required")

    new_role = parse_assignable_role(role)

    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        raise NotFoundError("User not found")

    existing = ProjectMember.query.filter_by(
        project_id=project_id,
        user_id=user.id
    ).first()
    if existing:
        raise ConflictError("User is already a member of this project")

    try:
        membership = ProjectMember(
            project_id=project_id,
            user_id=user.id,
            role=new_role
        )
        db.session.add(membership)
        db.session.commit()

    except Exception as e:
        db.session.rollback()
        log.error("member_add_failed", project_id=project_id, exc_info=True)
        raise MembershipError(f"Failed to add member: {str(e)}")

    log.info("member_added", project_id=project_id, user_id=user.id,
             role=new_role.value, added_by=user_id)
    return membership.to_dict()


# ============================================================
# CHANGE ROLE
# ============================================================

def update_member_role(user_id, project_id, member_id, role):
    access = resolve_access(user_id, project_id=project_id)
    member = _get_project_member(project_id, member_id)

    if member.role is MemberRole.OWNER:
        raise OwnerProtectedError("Cannot change the role of the project owner")

    if is_owner_role(role):
        raise OwnerProtectedError("A project can only have one owner")

    require_role(access, CAPABILITIES[Action.MANAGE_MEMBERS])

    member.role = parse_assignable_role(role)
    db.session.commit()

    log.info("member_role_changed", project_id=project_id, member_id=member_id,
             role=member.role.value, changed_by=user_id)
    return member.to_dict()


# ============================================================
# REMOVE MEMBER
# ============================================================

def remove_member(user_id, project_id, member_id):
    access = resolve_access(user_id, project_id=project_id)
    member = _get_project_member(project_id, member_id)

    if member.role is MemberRole.OWNER:
        raise OwnerProtectedError("Cannot remove the project owner")

    require_role(access, CAPABILITIES[Action.MANAGE_MEMBERS])

    db.session.delete(member)
    db.session.commit()

    log.info("member_removed", project_id=project_id, member_id=member_id,
             removed_by=user_id)
    return True
