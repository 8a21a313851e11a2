"""
CamNote Application Factory
"""
import logging
import os
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from config import config

db = SQLAlchemy()
migrate = Migrate()


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    app.logger.setLevel(level)
    logging.getLogger("camnote").setLevel(level)


def create_app(config_name='default'):
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    from camnote.services.ocr_service import configure_tesseract, ocr_ready
    configure_tesseract(app.config.get("TESSERACT_CMD") or None)

    # Register blueprints
    from camnote.api import api_bp
    from camnote.transforms import transforms_bp

    app.register_blueprint(api_bp)
    app.register_blueprint(transforms_bp)

    @app.errorhandler(413)
    def payload_too_large(e):
        limit_mb = (app.config.get("MAX_CONTENT_LENGTH") or 0) // (1024 * 1024)
        return jsonify({"error": f"Upload exceeds the {limit_mb} MB limit"}), 413

    # Health check endpoint
    @app.route('/healthz')
    def healthz():
        """Health check for load balancers and monitoring"""
        try:
            from sqlalchemy import text
            db.session.execute(text('SELECT 1'))
            db_status = "ok"
        except Exception as e:
            db_status = f"error: {e}"

        ocr_ok, ocr_msg = ocr_ready()

        return jsonify({
            "status": "ok" if db_status == "ok" else "degraded",
            "version": app.config["APP_VERSION"],
            "database": db_status,
            "ocr": "ok" if ocr_ok else ocr_msg,
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    from camnote.services.export_service import EXPORTERS
    from camnote.services.imaging import FILTERS

    # Version endpoint
    @app.route('/version')
    def version():
        """Version and build info"""
        return jsonify({
            "version": app.config["APP_VERSION"],
            "build_time": app.config["BUILD_TIME"],
            "git_commit": app.config["GIT_COMMIT"],
            "features": {
                "ocr": True,
                "signature": True,
                "pdf_protect": True,
                "pdf_merge": True,
                "export_formats": sorted(EXPORTERS),
                "filters": list(FILTERS),
            }
        })

    # Handle database initialization
    with app.app_context():
        from sqlalchemy import inspect
        from camnote import models  # noqa: F401  registers tables

        if os.getenv('RESET_DB', '').strip() in ('1', 'true', 'yes'):
            app.logger.warning('RESET_DB is set - dropping all tables...')
            db.drop_all()
            db.create_all()
            app.logger.warning('Fresh tables created')
        else:
            # Only create tables if they don't exist (safe for existing DB)
            inspector = inspect(db.engine)
            if not inspector.get_table_names():
                app.logger.info('No tables found, creating...')
                db.create_all()

    return app
