# Overview: Flask stand-in for the tenant REST API the console core consumes.

"""
Stand-in REST API

Run locally:
    flask --app tenant_console.mock_backend run --port 3001

The console (CONSOLE_API_BASE_URL=http://localhost:3001/api) can then log in
with the seeded users and exchange impersonation tokens issued with
`flask --app tenant_console.mock_backend impersonation issue <email>`.
"""

from flask import Flask

from ..config import MockBackendConfig
from .state import EXTENSION_KEY, BackendState, seed_demo_data


def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(MockBackendConfig)
    if config:
        app.config.update(config)

    state = BackendState(bcrypt_rounds=app.config["BCRYPT_ROUNDS"])
    app.extensions[EXTENSION_KEY] = state
    if app.config["DEBUG_SEED_ENABLED"]:
        seed_demo_data(state)

    from .routes.auth import auth_bp
    from .routes.settings import settings_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(settings_bp)

    from ..cli import register_commands
    register_commands(app)

    return app
