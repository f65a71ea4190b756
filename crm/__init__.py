# crm/__init__.py
from types import SimpleNamespace

from flask import Flask, current_app, request
from flask_pymongo import PyMongo
from flask_login import LoginManager

from .config import Config
from .errors import Unauthorized, register_error_handlers
from .logging_setup import configure_logging, init_request_logging

mongo = PyMongo()
login_manager = LoginManager()


def get_services():
    """The service objects wired up for the running app."""
    return current_app.extensions['crm']


def create_app(config_class=Config, db=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)
    init_request_logging(app)
    register_error_handlers(app)

    if db is None:
        mongo.init_app(app)
        db = mongo.db

    login_manager.init_app(app)

    # Initialize services
    from .services.auth_service import AuthService
    from .services.contact_service import ContactService
    from .services.contact_store import ContactStore
    from .services.group_service import GroupService
    from .services.membership_engine import GroupMembershipEngine
    from .services.tag_service import TagService
    from .services.user_service import UserService

    user_service = UserService(db)
    tag_service = TagService(db)
    group_service = GroupService(db, tag_service)
    contact_store = ContactStore(db)
    membership_engine = GroupMembershipEngine(contact_store, tag_service, group_service)

    app.extensions['crm'] = SimpleNamespace(
        db=db,
        user_service=user_service,
        auth_service=AuthService(
            user_service,
            secret=app.config['JWT_SECRET'],
            algorithm=app.config['JWT_ALGORITHM'],
            access_expires_minutes=app.config['JWT_ACCESS_EXPIRES_MINUTES'],
            refresh_expires_days=app.config['JWT_REFRESH_EXPIRES_DAYS']
        ),
        tag_service=tag_service,
        group_service=group_service,
        contact_store=contact_store,
        membership_engine=membership_engine,
        contact_service=ContactService(contact_store, tag_service, group_service, membership_engine),
    )

    # Register blueprints
    from .routes.auth_routes import bp as auth_bp
    from .routes.contact_routes import bp as contact_bp
    from .routes.group_routes import bp as group_bp
    from .routes.tag_routes import bp as tag_bp
    from .routes.user_routes import bp as user_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(contact_bp)
    app.register_blueprint(group_bp)
    app.register_blueprint(tag_bp)
    app.register_blueprint(user_bp)

    app.logger.info('CRM application initialized.')
    return app


@login_manager.request_loader
def load_user_from_request(req):
    return get_services().auth_service.load_user_from_header(req.headers.get('Authorization'))


@login_manager.unauthorized_handler
def unauthorized():
    if request.headers.get('Authorization'):
        raise Unauthorized('Invalid or expired token')
    raise Unauthorized('Missing bearer token')
