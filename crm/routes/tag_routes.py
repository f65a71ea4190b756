# crm/routes/tag_routes.py
from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from .. import get_services
from ..schemas import CreateTagDto, parse
from .helpers import json_body, owner_scope

bp = Blueprint('tags', __name__, url_prefix='/tags')


@bp.route('', methods=['GET'])
@login_required
def list_tags():
    tags = get_services().tag_service.list_tags(current_user.id)
    return jsonify([tag.to_json() for tag in tags])


@bp.route('', methods=['POST'])
@login_required
def create_tag():
    dto = parse(CreateTagDto, json_body())
    tag = get_services().tag_service.create_tag(dto.title, current_user.id)
    return jsonify(tag.to_json()), 201


@bp.route('/<tag_id>', methods=['DELETE'])
@login_required
def delete_tag(tag_id):
    get_services().tag_service.delete_tag(tag_id, owner_scope())
    return '', 204
