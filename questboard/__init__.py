"""Flask application factory."""

import os

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from questboard.config import config

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application."""
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    from questboard.extensions import init_sentry, limiter

    limiter.init_app(app)

    # CORS
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)

    if not app.config.get("TESTING"):
        from questboard.logging_config import setup_logging

        setup_logging(app)
        init_sentry(app)

    # Register blueprints
    from questboard.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api/v1")

    # Maintenance commands
    from questboard.cli import reset_weekly_points, seed_challenges

    app.cli.add_command(seed_challenges)
    app.cli.add_command(reset_weekly_points)

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    # Shell context
    @app.shell_context_processor
    def make_shell_context():
        from questboard.models import Challenge, DailyQuest, Mission, User

        return {
            "db": db,
            "User": User,
            "Challenge": Challenge,
            "DailyQuest": DailyQuest,
            "Mission": Mission,
        }

    return app
