# crm/routes/group_routes.py
from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from .. import get_services
from ..schemas import CreateGroupDto, parse
from .helpers import json_body, owner_scope

bp = Blueprint('groups', __name__, url_prefix='/groups')


@bp.route('', methods=['GET'])
@login_required
def list_groups():
    groups = get_services().group_service.list_groups(owner_scope())
    return jsonify([group.to_json() for group in groups])


@bp.route('', methods=['POST'])
@login_required
def create_group():
    dto = parse(CreateGroupDto, json_body())
    group = get_services().group_service.create_group(
        current_user.id, dto.title, tag_ids=dto.tags, is_inclusive=dto.is_inclusive
    )
    return jsonify(group.to_json()), 201


@bp.route('/<group_id>', methods=['GET'])
@login_required
def get_group(group_id):
    return jsonify(get_services().group_service.get_group(group_id, owner_scope()).to_json())


@bp.route('/<group_id>', methods=['DELETE'])
@login_required
def delete_group(group_id):
    get_services().group_service.delete_group(group_id, owner_scope())
    return '', 204
