from .roles import ROLE_LABELS, get_role


ROLE_BADGES = {
    'admin': 'bg-warning text-dark',
    'dispatcher': 'bg-info',
    'technician': 'bg-success',
    'reporter': 'bg-secondary',
}


def user_role(request):
    """Context processor exposing the current user's role"""
    context = {}

    role = get_role(request.user)
    if role is not None:
        context['user_role'] = role
        context['user_role_display'] = ROLE_LABELS[role]
        context['user_role_badge'] = ROLE_BADGES[role]

    return context
