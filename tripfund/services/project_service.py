"""
PROJECT SERVICE
===============

Handles:
- Creating projects (creator becomes OWNER in the same transaction)
- Listing the caller's projects
- Reading / updating / deleting a project
"""

import structlog
from sqlalchemy.orm import joinedload

from tripfund.extensions import db
from tripfund.models import MemberRole, Project, ProjectMember
from tripfund.services.authorization_service import Action, authorize
from tripfund.services.errors import TripfundError, NotFoundError
from tripfund.services.validation import optional_text, require_name

log = structlog.get_logger(__name__)


class ProjectError(TripfundError):
    """Project operation failed"""
    status_code = 500
    kind = 'project_error'


def shape_project(project, role=None):
    data = project.to_dict()
    data['owner'] = project.owner.to_summary() if project.owner else None
    if role is not None:
        data['role'] = role.value
    return data


# ============================================================
# LIST MY PROJECTS
# ============================================================

def list_user_projects(user_id):
    """All projects the user belongs to, each with the user's role."""
    memberships = ProjectMember.query.options(
        joinedload(ProjectMember.project).joinedload(Project.owner)
    ).filter_by(user_id=user_id).all()

    return [shape_project(m.project, role=m.role) for m in memberships]


# ============================================================
# CREATE PROJECT
# ============================================================

def create_project(user_id, data):
    """
    Create a project owned by user_id.

    ATOMIC: the project row and its OWNER membership are committed
    together or not at all.
    """
    name = require_name(data.get('name'))
    description = optional_text(data.get('description'), 'description')

    try:
        project = Project(
            name=name,
            description=description,
            owner_id=user_id
        )
        db.session.add(project)
        db.session.flush()

        db.session.add(ProjectMember(
            project_id=project.id,
            user_id=user_id,
            role=MemberRole.OWNER
        ))
        db.session.commit()

        log.info("project_created", project_id=project.id, owner_id=user_id)
        return shape_project(project, role=MemberRole.OWNER)

    except Exception as e:
        db.session.rollback()
        log.error("project_create_failed", owner_id=user_id, exc_info=True)
        raise ProjectError(f"Failed to create project: {str(e)}")


# ============================================================
# VIEW / UPDATE / DELETE
# ============================================================

def get_project(user_id, project_id):
    access = authorize(user_id, Action.VIEW_PROJECT, project_id=project_id)
    project = db.session.get(Project, project_id)
    return {
        'project': shape_project(project),
        'user_role': access.role.value,
    }


def update_project(user_id, project_id, data):
    """Owner/admin only. Fields not provided keep their value."""
    authorize(user_id, Action.UPDATE_PROJECT, project_id=project_id)
    project = db.session.get(Project, project_id)

    changes = {}
    if 'name' in data:
        changes['name'] = require_name(data.get('name'))
    if 'description' in data:
        changes['description'] = optional_text(data.get('description'), 'description')

    for field, value in changes.items():
        setattr(project, field, value)

    db.session.commit()
    log.info("project_updated", project_id=project_id, user_id=user_id)
    return shape_project(project)


def delete_project(user_id, project_id):
    """
    Owner only.
    Cascades to members, trips, participants and payments.
    """
    authorize(user_id, Action.DELETE_PROJECT, project_id=project_id)

    project = db.session.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")

    try:
        db.session.delete(project)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        log.error("project_delete_failed", project_id=project_id, exc_info=True)
        raise ProjectError(f"Failed to delete project: {str(e)}")

    log.info("project_deleted", project_id=project_id, user_id=user_id)
    return True
