# crm/routes/helpers.py
from functools import wraps

from flask import request
from flask_login import current_user, login_required

from .. import get_services
from ..errors import Forbidden, MethodNotAllowed, NotFound


def admin_required(f):
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_elevated:
            raise Forbidden('You do not have permission to access this resource.')
        return f(*args, **kwargs)
    return decorated_function


def json_body():
    return request.get_json(silent=True) or {}


def owner_scope():
    """Owner filter for bulk operations; elevated roles are not restricted."""
    return None if current_user.is_elevated else current_user.id


def _load_contact(contact_id):
    contact = get_services().contact_service.find_one(contact_id)
    if not contact:
        raise NotFound(f"Contact with ID {contact_id} not found")
    return contact


def find_contact_or_throw(contact_id):
    """Loads a contact the current user may modify (404 missing, 403 foreign)."""
    contact = _load_contact(contact_id)
    if not current_user.is_elevated and str(contact.owner_id) != current_user.id:
        raise Forbidden('Access denied')
    return contact


def validate_contact_access(contact_id):
    """Loads a contact the current user may read (404 missing, 405 foreign)."""
    contact = _load_contact(contact_id)
    if not current_user.is_elevated and str(contact.owner_id) != current_user.id:
        raise MethodNotAllowed('Not allowed to access this contact')
    return contact
