"""Flask extensions initialization."""

import os

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address


def rate_limit_key() -> str:
    """Limit per authenticated user, falling back to the remote address."""
    try:
        verify_jwt_in_request(optional=True)
        identity = get_jwt_identity()
    except Exception:
        identity = None
    if identity is not None:
        return f"user:{identity}"
    return get_remote_address()


# Rate limiter
limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=["1000 per day", "200 per hour"],
)


def init_sentry(app):
    """Initialize Sentry error tracking."""
    sentry_dsn = app.config.get("SENTRY_DSN") or os.environ.get("SENTRY_DSN")
    if sentry_dsn:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[
                FlaskIntegration(),
                SqlalchemyIntegration(),
            ],
            traces_sample_rate=0.1,
            environment=os.environ.get("FLASK_ENV", "production"),
            send_default_pii=False,
        )
        app.logger.info("Sentry initialized successfully")
    else:
        app.logger.warning("SENTRY_DSN not set, error tracking disabled")
