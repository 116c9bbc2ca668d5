"""
webvault — a markdown note vault editor that mirrors notes to Google Drive.

The app factory wires the record store, the Drive OAuth collaborator and the
HTTP blueprints together.  Services are constructed per app and kept in
``app.extensions`` so nothing lives in module-level singletons.
"""

import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS

db = SQLAlchemy()
migrate = Migrate()

logger = logging.getLogger(__name__)


def _setup_logging(app: Flask) -> None:
    handlers = [logging.StreamHandler()]
    log_file = app.config.get("LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=handlers,
    )


def create_app(config_class=None):
    app = Flask(__name__)

    if config_class:
        app.config.from_object(config_class)
    else:
        from config import Config
        app.config.from_object(Config)

    _setup_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    CORS(app)

    from webvault.services.store import VaultStore
    from webvault.services.drive import DriveAuth

    app.extensions["vault_store"] = VaultStore(db.session)
    app.extensions["drive_auth"] = DriveAuth(
        client_id=app.config.get("GOOGLE_CLIENT_ID", ""),
        client_secret=app.config.get("GOOGLE_CLIENT_SECRET", ""),
        redirect_uri=app.config.get("GOOGLE_REDIRECT_URI", ""),
        scopes=app.config.get("GOOGLE_DRIVE_SCOPES"),
    )

    from webvault.routes import api_bp
    from webvault.drive_routes import drive_bp
    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(drive_bp, url_prefix="/api")

    with app.app_context():
        db.create_all()
        if app.config.get("SEED_DEMO_DATA"):
            from webvault.seed import seed_demo_vault
            store = app.extensions["vault_store"]
            if not store.get_all_vaults():
                seed_demo_vault(store)
                logger.info("Seeded demo vault.")

    return app
