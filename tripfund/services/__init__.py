"""
Services Package
================

Business logic layer for tripfund.

All access-control, money and reporting rules live here.
Routes should call these services, not manipulate models directly.
"""

from tripfund.services.errors import (
    TripfundError,
    NotFoundError,
    AccessError,
    NotMemberError,
    InsufficientRoleError,
    OwnerProtectedError,
    NotSystemAdminError,
    ProjectUnresolvedError,
    ValidationError,
    ConflictError,
    UnauthenticatedError
)

from tripfund.services.authorization_service import (
    Access,
    Action,
    resolve_access,
    require_role,
    authorize,
    can,
    is_project_member,
    is_system_admin,
    require_system_admin
)

from tripfund.services.report_service import (
    get_project_summary,
    get_trip_report
)

from tripfund.services.project_service import (
    create_project,
    list_user_projects,
    ProjectError
)

from tripfund.services.membership_service import (
    add_member,
    update_member_role,
    remove_member,
    MembershipError
)

from tripfund.services.payment_service import (
    create_payment,
    PaymentError
)
