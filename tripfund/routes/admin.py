"""
ADMIN ROUTES
============

System administration:
- Statistics dashboard
- Users and projects across the whole system
- Granting / revoking system admin
"""

from flask import Blueprint
from flask_login import current_user, login_required

from tripfund.routes.responses import success
from tripfund.services import admin_service

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


# ============== DASHBOARD ==============
@admin_bp.route('/stats', methods=['GET'])
@login_required
def stats():
    return success(admin_service.get_system_stats(current_user.id))


# ============== USERS / PROJECTS ==============
@admin_bp.route('/users', methods=['GET'])
@login_required
def users():
    return success(admin_service.list_users(current_user.id))


@admin_bp.route('/projects', methods=['GET'])
@login_required
def projects():
    return success(admin_service.list_projects(current_user.id))


# ============== SYSTEM ADMIN FLAG ==============
@admin_bp.route('/users/<user_id>/make-admin', methods=['PATCH'])
@login_required
def make_admin(user_id):
    return success({'user': admin_service.grant_system_admin(current_user.id, user_id)})


@admin_bp.route('/users/<user_id>/remove-admin', methods=['PATCH'])
@login_required
def remove_admin(user_id):
    return success({'user': admin_service.revoke_system_admin(current_user.id, user_id)})
