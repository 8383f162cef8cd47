"""
Domain errors.

Every error carries a stable ``kind`` (what the client switches on)
and the HTTP status the routes answer with. Services raise these;
the application error handler turns them into JSON.
"""


class TripfundError(Exception):
    """Base exception for all domain errors"""
    kind = 'error'
    status_code = 400

    def __init__(self, message=None, **extra):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__
        self.extra = extra

    def to_dict(self):
        body = {'status': 'error', 'kind': self.kind, 'message': self.message}
        body.update(self.extra)
        return body


class NotFoundError(TripfundError):
    """Resource not found"""
    kind = 'not_found'
    status_code = 404


class AccessError(TripfundError):
    """Access denied"""
    kind = 'forbidden'
    status_code = 403


class NotMemberError(AccessError):
    """You are not a member of this project"""
    kind = 'forbidden_not_member'


class InsufficientRoleError(AccessError):
    """You do not have permission to perform this action"""
    kind = 'forbidden_insufficient_role'


class OwnerProtectedError(AccessError):
    """The project owner cannot be changed or removed"""
    kind = 'forbidden_owner_protected'


class NotSystemAdminError(AccessError):
    """Only system administrators can access this resource"""
    kind = 'forbidden_system_admin'


class ProjectUnresolvedError(AccessError):
    """Could not determine the associated project"""
    kind = 'project_unresolved'
    status_code = 400


class ValidationError(TripfundError):
    """Invalid input"""
    kind = 'validation_error'
    status_code = 400


class ConflictError(TripfundError):
    """Resource already exists"""
    kind = 'conflict'
    status_code = 409


class UnauthenticatedError(TripfundError):
    """You are not logged in"""
    kind = 'unauthenticated'
    status_code = 401
