"""
PROJECT ROUTES
==============

Projects and their member lists.
"""

from flask import Blueprint
from flask_login import current_user, login_required

from tripfund.routes.responses import json_body, success
from tripfund.services import membership_service, project_service

projects_bp = Blueprint('projects', __name__, url_prefix='/api/projects')


# ============== MY PROJECTS ==============
@projects_bp.route('', methods=['GET'])
@login_required
def list_projects():
    return success(project_service.list_user_projects(current_user.id))


@projects_bp.route('', methods=['POST'])
@login_required
def create_project():
    project = project_service.create_project(current_user.id, json_body())
    return success({'project': project}, 201)


# ============== SINGLE PROJECT ==============
@projects_bp.route('/<project_id>', methods=['GET'])
@login_required
def get_project(project_id):
    return success(project_service.get_project(current_user.id, project_id))


@projects_bp.route('/<project_id>', methods=['PATCH'])
@login_required
def update_project(project_id):
    project = project_service.update_project(current_user.id, project_id, json_body())
    return success({'project': project})


@projects_bp.route('/<project_id>', methods=['DELETE'])
@login_required
def delete_project(project_id):
    project_service.delete_project(current_user.id, project_id)
    return success(None)


# ============== MEMBERS ==============
@projects_bp.route('/<project_id>/members', methods=['GET'])
@login_required
def list_members(project_id):
    return success(membership_service.list_members(current_user.id, project_id))


@projects_bp.route('/<project_id>/members', methods=['POST'])
@login_required
def add_member(project_id):
    data = json_body()
    member = membership_service.add_member(
        current_user.id, project_id, data.get('email'), data.get('role')
    )
    return success({'member': member}, 201)


@projects_bp.route('/<project_id>/members/<member_id>', methods=['PATCH'])
@login_required
def update_member(project_id, member_id):
    member = membership_service.update_member_role(
        current_user.id, project_id, member_id, json_body().get('role')
    )
    return success({'member': member})


@projects_bp.route('/<project_id>/members/<member_id>', methods=['DELETE'])
@login_required
def remove_member(project_id, member_id):
    membership_service.remove_member(current_user.id, project_id, member_id)
    return success(None)
