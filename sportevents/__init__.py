from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect
import logging
from logging.handlers import SMTPHandler, RotatingFileHandler
import os

# Extensions are bound to an app in create_app()
db = SQLAlchemy()
migrate = Migrate()
login = LoginManager()
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per day", "50 per hour"]
)

# The API only serves JSON, so nothing needs to load from other origins
SECURITY_HEADERS = {
    'Content-Security-Policy': "default-src 'none'; frame-ancestors 'none'",
    'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Referrer-Policy': 'no-referrer',
    'Cache-Control': 'no-store',
}


def create_app(config_name='development'):
    """Build the Sport Events application for the named configuration"""
    app = Flask(__name__)

    from config import config
    app.config.from_object(config[config_name])

    db.init_app(app)
    migrate.init_app(app, db)
    login.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    configure_logging(app)
    register_login_handlers(app)
    register_signal_handlers(app)
    register_middleware(app)
    register_routes(app)
    register_commands(app)

    return app


def configure_logging(app):
    """
    Attach file and e-mail handlers to the application logger.

    Actions and services log through current_app.logger, so every
    message lands in the same handlers.
    """
    logs_dir = os.path.join(app.instance_path, 'logs')
    os.makedirs(logs_dir, exist_ok=True)

    file_handler = RotatingFileHandler(os.path.join(logs_dir, 'app.log'),
                                       maxBytes=1024 * 1024, backupCount=10)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s %(name)s: %(message)s'))
    file_handler.setLevel(logging.INFO)
    app.logger.addHandler(file_handler)

    app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)

    # Storage and unexpected errors are mailed to ADMINS outside development
    mail_server = app.config.get('MAIL_SERVER')
    if mail_server and not (app.debug or app.testing):
        credentials = None
        if app.config['MAIL_USERNAME'] or app.config['MAIL_PASSWORD']:
            credentials = (app.config['MAIL_USERNAME'], app.config['MAIL_PASSWORD'])
        mail_handler = SMTPHandler(
            mailhost=(mail_server, app.config['MAIL_PORT']),
            fromaddr=f'no-reply@{mail_server}',
            toaddrs=app.config['ADMINS'],
            subject='Sport Events error',
            credentials=credentials,
            secure=() if app.config['MAIL_USE_TLS'] else None)
        mail_handler.setLevel(logging.ERROR)
        app.logger.addHandler(mail_handler)

    app.logger.info(f"Sport Events starting ({app.config.get('APP_URL')})")


def register_login_handlers(app):
    """Answer unauthenticated API calls with JSON instead of a redirect"""

    @login.unauthorized_handler
    def unauthorized():
        from sportevents.errors import ErrorCode, error_response
        return error_response('Authentication required. Please log in.',
                              ErrorCode.AUTHENTICATION_REQUIRED)


def register_signal_handlers(app):
    """Connect receivers for application signals"""
    from sportevents.signals import dashboard_invalidated

    @dashboard_invalidated.connect_via(app)
    def log_dashboard_invalidation(sender, path, **extra):
        app.logger.debug(f"Cached view {path} marked stale")


def register_middleware(app):
    @app.after_request
    def add_security_headers(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


def register_routes(app):
    """Register the auth and events blueprints plus JSON error handlers"""
    from sportevents.auth import bp as auth_bp
    from sportevents.events import bp as events_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(events_bp, url_prefix='/api')

    from sportevents.errors import register_error_handlers
    register_error_handlers(app)

    # Models must be imported before create_all() or migrations run
    from sportevents import models


def register_commands(app):
    from sportevents.cli import register_cli
    register_cli(app)
