import os
import logging
import traceback

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

from config import Config
from esg_platform.query_cache import QueryCache

db = SQLAlchemy()
login_manager = LoginManager()
cache = QueryCache()

_startup_errors = []


@login_manager.unauthorized_handler
def _unauthorized():
    return jsonify({"error": "Authentication required."}), 401


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    os.makedirs(app.instance_path, exist_ok=True)
    os.makedirs(app.config.get("UPLOAD_FOLDER", os.path.join(app.instance_path, "uploads")), exist_ok=True)

    # HTTPS support behind a reverse proxy
    if os.environ.get("BEHIND_PROXY") or os.environ.get("RENDER"):
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    db.init_app(app)
    login_manager.init_app(app)

    cache.ttl = app.config.get("CACHE_TTL", 300)
    cache.max_entries = app.config.get("CACHE_MAX_ENTRIES", 500)
    cache.clear()

    from flask_compress import Compress
    Compress(app)

    from esg_platform.auth.routes import auth_bp
    from esg_platform.dashboard.routes import dashboard_bp
    from esg_platform.employees.routes import employees_bp
    from esg_platform.training.routes import training_bp
    from esg_platform.documents.routes import documents_bp
    from esg_platform.reports.routes import reports_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(training_bp)
    app.register_blueprint(documents_bp)
    app.register_blueprint(reports_bp)

    @app.route("/health")
    def health():
        """Health check: database connectivity and AI configuration."""
        db_url = app.config["SQLALCHEMY_DATABASE_URI"]
        db_type = db_url.split("://")[0] if "://" in db_url else "sqlite"

        db_ok = False
        db_error = None
        tables = []
        try:
            from sqlalchemy import inspect, text
            db.session.execute(text("SELECT 1"))
            db_ok = True
            tables = inspect(db.engine).get_table_names()
        except Exception as e:
            db_error = str(e)

        return jsonify({
            "status": "ok" if db_ok else "db_error",
            "ai_key_set": bool(app.config.get("ANTHROPIC_API_KEY")),
            "database_type": db_type,
            "database_connected": db_ok,
            "database_error": db_error,
            "tables": tables,
            "training_status_source": app.config.get("TRAINING_STATUS_SOURCE"),
            "cache_entries": len(cache),
            "startup_errors": _startup_errors,
        })

    from esg_platform.api import InvalidInput

    @app.errorhandler(InvalidInput)
    def invalid_input(error):
        return jsonify({"error": str(error)}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found."}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed."}), 405

    @app.errorhandler(413)
    def file_too_large(error):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 0) // (1024 * 1024)
        return jsonify({"error": f"File too large. Maximum size is {max_mb} MB."}), 413

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        original = getattr(error, "original_exception", None) or error
        error_detail = f"{type(original).__name__}: {original}"
        logger.error(f"500 error: {error_detail}\n{traceback.format_exc()}")
        return jsonify({"error": "Internal server error.", "detail": error_detail}), 500

    with app.app_context():
        try:
            db.create_all()
            logger.info("Database tables created/verified.")
        except Exception as e:
            msg = f"db.create_all() failed: {e}"
            logger.error(msg)
            _startup_errors.append(msg)

        try:
            _seed_admin(app)
        except Exception as e:
            msg = f"_seed_admin() failed: {e}"
            logger.error(msg)
            _startup_errors.append(msg)

    return app


def _seed_admin(app):
    """Create the default admin user if none exists."""
    from esg_platform.models import User

    username = app.config.get("ADMIN_USERNAME", "admin")
    if User.query.filter_by(username=username).first():
        return False
    admin = User(
        username=username,
        email=f"{username}@example.com",
        role="admin",
        full_name="Administrator",
        must_change_password=False,
    )
    admin.set_password(app.config.get("ADMIN_PASSWORD", "admin123"))
    db.session.add(admin)
    db.session.commit()
    logging.getLogger(__name__).info(f"Admin user '{username}' created.")
    return True
