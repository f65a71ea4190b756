# crm/routes/user_routes.py
from flask import Blueprint, jsonify

from .. import get_services
from ..schemas import CreateUserDto, parse
from .helpers import admin_required, json_body

bp = Blueprint('users', __name__, url_prefix='/users')


@bp.route('', methods=['POST'])
@admin_required
def create_user():
    dto = parse(CreateUserDto, json_body())
    user = get_services().user_service.create_user(
        email=dto.email,
        password=dto.password,
        first_name=dto.first_name,
        last_name=dto.last_name,
        role=dto.role
    )
    return jsonify(user.to_json()), 201


@bp.route('', methods=['GET'])
@admin_required
def list_users():
    return jsonify([user.to_json() for user in get_services().user_service.list_users()])


@bp.route('/<user_id>', methods=['GET'])
@admin_required
def get_user(user_id):
    return jsonify(get_services().user_service.get_user_or_raise(user_id).to_json())
