"""Role to permission mapping.

Every place that assigns a role derives the permission set from
``permissions_for`` so the two never drift apart.
"""

CREATE_SUBMISSION = 'create_submission'
REVIEW_SUBMISSION = 'review_submission'
MANAGE_USERS = 'manage_users'
ADMIN_ACCESS = 'admin_access'

ROLES = ('citizen', 'researcher', 'reviewer', 'admin')

_ROLE_PERMISSIONS = {
    'citizen': (CREATE_SUBMISSION,),
    'researcher': (CREATE_SUBMISSION,),
    'reviewer': (CREATE_SUBMISSION, REVIEW_SUBMISSION),
    'admin': (CREATE_SUBMISSION, REVIEW_SUBMISSION, MANAGE_USERS, ADMIN_ACCESS),
}


def permissions_for(role: str) -> list[str]:
    try:
        return list(_ROLE_PERMISSIONS[role])
    except KeyError:
        raise ValueError(f'Unknown role: {role}') from None


def has_permission(user, permission: str) -> bool:
    if user is None:
        return False
    return permission in (user.permissions or [])


def can_review(user) -> bool:
    return has_permission(user, REVIEW_SUBMISSION)
