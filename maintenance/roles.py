from django.core.exceptions import PermissionDenied


ROLE_ADMIN = 'admin'
ROLE_DISPATCHER = 'dispatcher'
ROLE_TECHNICIAN = 'technician'
ROLE_REPORTER = 'reporter'

ROLE_LABELS = {
    ROLE_ADMIN: 'Administrator',
    ROLE_DISPATCHER: 'Dispatcher',
    ROLE_TECHNICIAN: 'Technician',
    ROLE_REPORTER: 'User',
}


def get_role(user):
    """Role of ``user``, derived from superuser status and group membership."""
    if user is None or not user.is_authenticated:
        return None
    if user.is_superuser:
        return ROLE_ADMIN

    groups = set(user.groups.values_list('name', flat=True))
    for role in (ROLE_ADMIN, ROLE_DISPATCHER, ROLE_TECHNICIAN):
        if role in groups:
            return role
    return ROLE_REPORTER


def require_role(actor, *roles):
    role = get_role(actor)
    if role not in roles:
        raise PermissionDenied(f"This action requires one of: {', '.join(roles)}")
    return role
