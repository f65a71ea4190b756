# crm/routes/contact_routes.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from .. import get_services
from ..errors import NotFound
from ..pagination import paginate
from ..schemas import (ContactBulkDto, CreateContactDto, PaginateQuery, UpdateContactDto,
                       UpsertContactDto, parse)
from .helpers import find_contact_or_throw, json_body, owner_scope, validate_contact_access

bp = Blueprint('contacts', __name__, url_prefix='/contacts')


def _contacts():
    return get_services().contact_service


def _render(contact):
    return _contacts().serialize([contact])[0]


def _list_page(group_id=None):
    query = parse(PaginateQuery, request.args.to_dict())
    contacts = _contacts().find_all(
        current_user.id,
        search=query.search,
        sort=query.sort,
        order=query.order,
        cursor_id=query.cursor_id,
        limit=query.limit,
        group_id=group_id
    )
    if not contacts:
        raise NotFound('Contacts not found')
    return jsonify(paginate(_contacts().serialize(contacts), query.limit))


@bp.route('', methods=['POST'])
@login_required
def create_contact():
    dto = parse(CreateContactDto, json_body())
    contact = _contacts().create(dto, current_user.id)
    return jsonify(_render(contact)), 201


@bp.route('', methods=['GET'])
@login_required
def find_all_contacts():
    return _list_page()


@bp.route('/groups/<group_id>', methods=['GET'])
@login_required
def find_all_contacts_for_group(group_id):
    return _list_page(group_id=group_id)


@bp.route('/tags', methods=['GET'])
@login_required
def find_contacts_by_tags():
    tag_ids = [tag_id for tag_id in request.args.get('ids', '').split(',') if tag_id]
    exclusive = request.args.get('exclusive', 'false').lower() == 'true'
    contacts = _contacts().find_by_tags(tag_ids, exclusive=exclusive, owner_id=owner_scope())
    return jsonify(_contacts().serialize(contacts))


@bp.route('/count', methods=['GET'])
@login_required
def get_count():
    return jsonify(_contacts().get_count(current_user.id))


@bp.route('/kpi', methods=['GET'])
@login_required
def get_kpis():
    return jsonify(_contacts().get_kpis(current_user.id))


@bp.route('/<contact_id>', methods=['GET'])
@login_required
def find_one_contact(contact_id):
    contact = validate_contact_access(contact_id)
    return jsonify(_render(contact))


@bp.route('/upsert', methods=['POST'])
@login_required
def create_or_update_contact():
    dto = parse(UpsertContactDto, json_body())
    contact = _contacts().create_or_update_with_tags(dto, current_user.id)
    return jsonify(_render(contact))


@bp.route('/<contact_id>', methods=['PATCH'])
@login_required
def update_contact(contact_id):
    contact = find_contact_or_throw(contact_id)
    dto = parse(UpdateContactDto, json_body())
    updated = _contacts().update(contact._id, dto)
    return jsonify(_render(updated))


@bp.route('/tag/<tag_id>', methods=['PATCH'])
@login_required
def add_tag_to_contacts(tag_id):
    dto = parse(ContactBulkDto, json_body())
    result = _contacts().add_tag_to_contacts(tag_id, dto.contact_ids, owner_id=owner_scope())
    return jsonify(result.to_json())


@bp.route('/<contact_id>/tag/<tag_id>', methods=['PATCH'])
@login_required
def add_tag_to_contact(contact_id, tag_id):
    contact = find_contact_or_throw(contact_id)
    updated = _contacts().add_tag_to_contact(tag_id, contact._id)
    return jsonify(_render(updated))


@bp.route('/<contact_id>/tag/<tag_id>', methods=['DELETE'])
@login_required
def remove_tag_from_contact(contact_id, tag_id):
    contact = find_contact_or_throw(contact_id)
    updated = _contacts().remove_tag_from_contact(tag_id, contact._id)
    return jsonify(_render(updated))


@bp.route('/many', methods=['DELETE'])
@login_required
def remove_many_contacts():
    dto = parse(ContactBulkDto, json_body())
    deleted = _contacts().remove_many(dto.contact_ids, owner_id=owner_scope())
    return jsonify({'deleted': deleted})


@bp.route('/<contact_id>', methods=['DELETE'])
@login_required
def remove_contact(contact_id):
    contact = find_contact_or_throw(contact_id)
    _contacts().remove(contact._id)
    return '', 204
