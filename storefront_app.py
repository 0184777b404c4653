import os

from flask import Flask, jsonify

from blueprints import register_blueprints
from modules.configuration.config_env import get_db_config
from modules.configuration.log_config import (
    logger, info_id, debug_id, get_request_id, set_request_id, with_request_id,
    log_timed_operation, request_id_middleware,
)


@with_request_id
def create_app(db_config=None, testing=False, request_id=None):
    """Create the storefront search application."""

    with log_timed_operation("flask_app_creation", request_id):
        app = Flask(__name__)
        app.config['TESTING'] = testing

        # Product names carry accents; keep them readable in JSON responses
        app.json.ensure_ascii = False

        # db_config is shared by the blueprints through app.config
        db_config = db_config or get_db_config()
        app.config['db_config'] = db_config
        if not testing:
            db_config.ensure_extensions()

        request_id_middleware(app)
        info_id("Request ID middleware registered", request_id)

        register_blueprints(app)

        @app.route('/health')
        def health_check():
            rid = get_request_id()
            debug_id("Health check requested", rid)
            return jsonify({"status": "healthy", "request_id": rid})

    return app


if __name__ == '__main__':
    startup_request_id = set_request_id("app-startup")
    port = int(os.environ.get('PORT', 5000))
    logger.info("Starting the storefront search service")
    application = create_app(request_id=startup_request_id)
    info_id(f"Serving on port {port}", startup_request_id)
    application.run(host='0.0.0.0', port=port)
