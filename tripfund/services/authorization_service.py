"""
CENTRALIZED AUTHORIZATION SERVICE
==================================

All permission checks live here.
Routes and other services call these functions.

Roles are checked against the CAPABILITIES table, one explicit role set
per action. There is no implied hierarchy between roles.
"""

import enum
from collections import namedtuple

from tripfund.extensions import db
from tripfund.models import MemberRole, Project, ProjectMember, Trip, User
from tripfund.services.errors import (
    InsufficientRoleError, NotFoundError, NotMemberError,
    NotSystemAdminError, ProjectUnresolvedError
)
from tripfund.services.validation import optional_id

# Caller's resolved position in a project
Access = namedtuple('Access', ['user_id', 'project_id', 'role'])


class Action(enum.Enum):
    VIEW_PROJECT = 'view_project'
    UPDATE_PROJECT = 'update_project'
    DELETE_PROJECT = 'delete_project'
    MANAGE_MEMBERS = 'manage_members'
    MANAGE_TRIPS = 'manage_trips'
    MANAGE_PARTICIPANTS = 'manage_participants'
    RECORD_PAYMENT = 'record_payment'
    EDIT_PAYMENT = 'edit_payment'
    VIEW_REPORTS = 'view_reports'


ALL_ROLES = frozenset(MemberRole)
MANAGERS = frozenset({MemberRole.OWNER, MemberRole.ADMIN})

CAPABILITIES = {
    Action.VIEW_PROJECT: ALL_ROLES,
    Action.UPDATE_PROJECT: MANAGERS,
    Action.DELETE_PROJECT: frozenset({MemberRole.OWNER}),
    Action.MANAGE_MEMBERS: MANAGERS,
    Action.MANAGE_TRIPS: MANAGERS,
    Action.MANAGE_PARTICIPANTS: MANAGERS,
    Action.RECORD_PAYMENT: ALL_ROLES,
    # Collectors additionally need to be the collector of record
    Action.EDIT_PAYMENT: ALL_ROLES,
    Action.VIEW_REPORTS: ALL_ROLES,
}


# ============================================================
# PROJECT MEMBERSHIP CHECKS
# ============================================================

def get_membership(user_id, project_id):
    """Get membership record"""
    return ProjectMember.query.filter_by(
        user_id=user_id,
        project_id=project_id
    ).first()


def is_project_member(user_id, project_id):
    """Check if user is a member of project"""
    return get_membership(user_id, project_id) is not None


# ============================================================
# ACCESS RESOLUTION
# ============================================================

def resolve_project_id(project_id=None, trip_id=None):
    """
    Find the project a request targets.

    An explicit project_id wins. Otherwise it is looked up through the
    trip. Unknown ids raise NotFoundError; no id at all raises
    ProjectUnresolvedError.
    """
    project_id = optional_id(project_id, "project_id")
    trip_id = optional_id(trip_id, "trip_id")

    if project_id:
        if db.session.get(Project, project_id) is None:
            raise NotFoundError("Project not found")
        return project_id

    if trip_id:
        trip = db.session.get(Trip, trip_id)
        if trip is None:
            raise NotFoundError("Trip not found")
        return trip.project_id

    raise ProjectUnresolvedError("Could not determine the associated project")


def resolve_access(user_id, project_id=None, trip_id=None):
    """
    Resolve the caller's role in the target project.

    Returns Access(user_id, project_id, role) or raises:
    - NotFoundError: project/trip does not exist
    - ProjectUnresolvedError: neither id given
    - NotMemberError: caller has no membership in the project
    """
    project_id = resolve_project_id(project_id=project_id, trip_id=trip_id)

    membership = get_membership(user_id, project_id)
    if membership is None:
        raise NotMemberError("You are not a member of this project")

    return Access(user_id=user_id, project_id=project_id, role=membership.role)


def require_role(access, allowed_roles):
    """Raise InsufficientRoleError unless access.role is in allowed_roles."""
    if access.role not in allowed_roles:
        raise InsufficientRoleError(
            f"Your role ({access.role.value}) does not permit this action"
        )
    return access


def can(access, action):
    return access.role in CAPABILITIES[action]


def authorize(user_id, action, project_id=None, trip_id=None):
    """Resolve access and check it against the capability table."""
    access = resolve_access(user_id, project_id=project_id, trip_id=trip_id)
    return require_role(access, CAPABILITIES[action])


# ============================================================
# PAYMENT OWNERSHIP
# ============================================================

def can_modify_payment(access, payment):
    """
    Check if the caller can update/delete a payment.

    Requirements:
    - Caller is the collector who recorded it, OR
    - Caller is owner/admin of the project
    """
    if not can(access, Action.EDIT_PAYMENT):
        return False, "You do not have permission to modify payments"

    if payment.collector_id == access.user_id:
        return True, None

    if access.role in MANAGERS:
        return True, None

    return False, "You can only modify your own payments unless you are an admin or owner"


# ============================================================
# SYSTEM ADMIN
# ============================================================

def is_system_admin(user_id):
    user = db.session.get(User, user_id)
    return bool(user and user.is_system_admin)


def require_system_admin(user_id):
    if not is_system_admin(user_id):
        raise NotSystemAdminError(
            "Access denied. Only system administrators can access this resource."
        )
    return True


# ============================================================
# HELPER FUNCTION: REQUIRE AUTHORIZATION
# ============================================================

def require_authorization(check_func, *args, error_class=InsufficientRoleError):
    """
    Wrapper to raise exception if authorization fails.

    Usage:
        require_authorization(can_modify_payment, access, payment)
    """
    allowed, reason = check_func(*args)
    if not allowed:
        raise error_class(reason)
    return True
