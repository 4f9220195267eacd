from enum import Enum

from clinicforms.errors import PermissionDenied
from clinicforms.models import UserRole


class Action(str, Enum):
    manage_forms = "manage_forms"
    manage_clients = "manage_clients"
    review_submissions = "review_submissions"
    manage_team = "manage_team"
    view_audit_trail = "view_audit_trail"
    invite_owner = "invite_owner"
    export_data = "export_data"
    fill_forms = "fill_forms"


_STAFF = {Action.fill_forms, Action.export_data}
_MANAGER = set(Action) - {Action.invite_owner}

CAPABILITIES = {
    UserRole.owner: set(Action),
    UserRole.manager: _MANAGER,
    UserRole.staff: _STAFF,
}


def can(role, action) -> bool:
    try:
        return Action(action) in CAPABILITIES.get(UserRole(role), set())
    except ValueError:
        return False


def require(role, action) -> None:
    if not can(role, action):
        raise PermissionDenied(f"Role '{getattr(role, 'value', role)}' may not {Action(action).value.replace('_', ' ')}")
