# crm/routes/auth_routes.py
from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from .. import get_services
from ..schemas import LoginDto, RefreshDto, parse
from .helpers import json_body

bp = Blueprint('auth', __name__, url_prefix='/auth')


@bp.route('/login', methods=['POST'])
def login():
    dto = parse(LoginDto, json_body())
    auth_service = get_services().auth_service
    user = auth_service.validate_user(dto.email, dto.password)
    return jsonify(auth_service.login(user))


@bp.route('/refresh', methods=['POST'])
def refresh():
    dto = parse(RefreshDto, json_body())
    return jsonify(get_services().auth_service.refresh(dto.refresh_token))


@bp.route('/profile', methods=['GET'])
@login_required
def profile():
    return jsonify(current_user.to_json())
