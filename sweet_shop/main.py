# ==============================================================================
# FLASK APPLICATION - JSON API
# ==============================================================================
# create_app() builds one application around one AppContainer:
#
#   /api/health                      → liveness
#   /api/auth/...                    → register, login, profile, password
#   /api/sweets/...                  → catalog, search, purchase, restock
#
# Routes only validate input (validators.py) and call services. Every
# SweetShopError raised below them is turned into the JSON envelope
# {"success": false, "message": ..., "errors"?: [...]} with its status code.
# ==============================================================================

import atexit
import logging
from typing import Optional

from flask import Blueprint, Flask, current_app, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from sweet_shop.access_control import admin_required, login_required
from sweet_shop.app_container import AppContainer
from sweet_shop.config import Config
from sweet_shop.errors import NotFoundError, SweetShopError, ValidationError
from sweet_shop.logger import configure_logging, log_startup
from sweet_shop.models import utcnow
from sweet_shop.performance_logger import init_profiling
from sweet_shop.seed import register_cli, seed_catalog
from sweet_shop.validators import (
    validate_login,
    validate_password_change,
    validate_purchase,
    validate_registration,
    validate_restock,
    validate_search,
    validate_sweet_create,
    validate_sweet_update,
)

logger = logging.getLogger(__name__)


def _container() -> AppContainer:
    return current_app.extensions['sweet_shop']


def _ok(data=None, message: Optional[str] = None, status: int = 200):
    payload = {'success': True}
    if message is not None:
        payload['message'] = message
    if data is not None:
        payload['data'] = data
    return jsonify(payload), status


def _json_body(optional: bool = False):
    """
    Parsed JSON request body.

    Args:
        optional: An empty body is allowed and read as None

    Raises:
        ValidationError: The body is absent or does not parse as JSON
    """
    if optional and not request.get_data():
        return None
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError([{'field': 'body', 'message': 'Request body must be valid JSON'}])
    return data


# ═══════════════════════════════════════════════════════════════════════════
# AUTH ROUTES
# ═══════════════════════════════════════════════════════════════════════════

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@auth_bp.route('/register', methods=['POST'])
def register():
    data = validate_registration(_json_body())
    result = _container().auth_service.register(data['email'], data['username'], data['password'])
    return _ok(result.to_dict(), 'User registered successfully', 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = validate_login(_json_body())
    result = _container().auth_service.login(data['email'], data['password'])
    return _ok(result.to_dict(), 'Login successful')


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    user = _container().auth_service.get_user_by_id(g.current_user.user_id)
    if user is None:
        raise NotFoundError('User not found')
    return _ok(user)


@auth_bp.route('/password', methods=['PUT'])
@login_required
def change_password():
    data = validate_password_change(_json_body())
    _container().auth_service.change_password(
        g.current_user.user_id, data['current_password'], data['new_password']
    )
    return _ok(message='Password updated successfully')


# ═══════════════════════════════════════════════════════════════════════════
# CATALOG ROUTES
# ═══════════════════════════════════════════════════════════════════════════

sweets_bp = Blueprint('sweets', __name__, url_prefix='/api/sweets')


@sweets_bp.route('', methods=['GET'])
@login_required
def list_sweets():
    sweets = _container().catalog_service.find_all()
    return _ok([s.to_public_dict() for s in sweets])


@sweets_bp.route('', methods=['POST'])
@login_required
def create_sweet():
    data = validate_sweet_create(_json_body())
    sweet = _container().catalog_service.create(data)
    return _ok(sweet.to_public_dict(), 'Sweet created successfully', 201)


@sweets_bp.route('/search', methods=['GET'])
@login_required
def search_sweets():
    criteria = validate_search(request.args)
    sweets = _container().catalog_service.search(**criteria)
    return _ok([s.to_public_dict() for s in sweets])


@sweets_bp.route('/reseed', methods=['POST'])
@login_required
@admin_required
def reseed():
    catalog = _container().catalog_service
    seed_catalog(catalog, replace=True)
    sweets = catalog.find_all()
    logger.warning("Catalog reseeded by %s", g.current_user.user_id)
    return _ok([s.to_public_dict() for s in sweets], f'Database reseeded with {len(sweets)} sweets')


@sweets_bp.route('/<sweet_id>', methods=['GET'])
@login_required
def get_sweet(sweet_id):
    sweet = _container().catalog_service.find_by_id(sweet_id)
    if sweet is None:
        raise NotFoundError('Sweet not found')
    return _ok(sweet.to_public_dict())


@sweets_bp.route('/<sweet_id>', methods=['PUT'])
@login_required
def update_sweet(sweet_id):
    changes = validate_sweet_update(_json_body())
    sweet = _container().catalog_service.update(sweet_id, changes)
    if sweet is None:
        raise NotFoundError('Sweet not found')
    return _ok(sweet.to_public_dict(), 'Sweet updated successfully')


@sweets_bp.route('/<sweet_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_sweet(sweet_id):
    if not _container().catalog_service.delete(sweet_id):
        raise NotFoundError('Sweet not found')
    return '', 204


# ═══════════════════════════════════════════════════════════════════════════
# INVENTORY ROUTES
# ═══════════════════════════════════════════════════════════════════════════

@sweets_bp.route('/<sweet_id>/purchase', methods=['POST'])
@login_required
def purchase_sweet(sweet_id):
    quantity = validate_purchase(_json_body(optional=True))
    sweet = _container().catalog_service.purchase(sweet_id, quantity)
    return _ok(sweet.to_public_dict(), f'Successfully purchased {quantity} {sweet.name}')


@sweets_bp.route('/<sweet_id>/restock', methods=['POST'])
@login_required
@admin_required
def restock_sweet(sweet_id):
    quantity = validate_restock(_json_body())
    sweet = _container().catalog_service.restock(sweet_id, quantity)
    return _ok(sweet.to_public_dict(), f'Successfully restocked {quantity} {sweet.name}')


# ═══════════════════════════════════════════════════════════════════════════
# ERROR HANDLERS
# ═══════════════════════════════════════════════════════════════════════════

def _register_error_handlers(app: Flask) -> None:

    @app.errorhandler(SweetShopError)
    def handle_domain_error(e: SweetShopError):
        logger.info("%s %s -> %s (%s)", request.method, request.path, e.status_code, e.kind)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        message = 'Endpoint not found' if e.code == 404 else e.name
        return jsonify({'success': False, 'message': message}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        config: Config = current_app.extensions['sweet_shop'].config
        message = 'Internal server error' if config.production_mode else (str(e) or 'Internal server error')
        return jsonify({'success': False, 'message': message}), 500


# ═══════════════════════════════════════════════════════════════════════════
# APPLICATION FACTORY
# ═══════════════════════════════════════════════════════════════════════════

def create_app(config: Optional[Config] = None, container: Optional[AppContainer] = None) -> Flask:
    """
    Builds the Flask application.

    Args:
        config: Settings (Config.from_env() by default)
        container: Pre-built dependencies (built from config by default)

    Returns:
        Configured Flask app; the container lives in app.extensions['sweet_shop']
    """
    if config is None:
        config = container.config if container is not None else Config.from_env()
    if container is None:
        container = AppContainer(config)

    configure_logging(config)
    if not config.testing:
        log_startup(config)

    app = Flask(__name__)
    app.config['SECRET_KEY'] = config.secret_key
    app.config['TESTING'] = config.testing
    app.json.sort_keys = False
    app.extensions['sweet_shop'] = container

    CORS(app, resources={r'/api/*': {'origins': config.frontend_url}}, supports_credentials=True)
    init_profiling(app, config.enable_profiling)

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
        # HSTS only when served over real HTTPS
        if request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({
            'success': True,
            'message': 'Sweet Shop API is running',
            'timestamp': utcnow().isoformat(),
        })

    app.register_blueprint(auth_bp)
    app.register_blueprint(sweets_bp)
    _register_error_handlers(app)
    register_cli(app)

    if config.auto_seed:
        seed_catalog(container.catalog_service)

    atexit.register(container.close)
    return app
