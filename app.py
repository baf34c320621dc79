import logging

from flask import Flask, jsonify
from flask_migrate import Migrate

from models import db
from routes import register_blueprints
from routes.oneflow.helpers import CLIENT_EXTENSION, REGISTRY_EXTENSION
from services.oneflow import OneflowClient, get_default_registry

logger = logging.getLogger(__name__)


def create_app(config_object='config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Initialize extensions
    db.init_app(app)
    migrate = Migrate(app, db)

    # Template allow-list is loaded once; a broken file fails startup
    app.extensions[REGISTRY_EXTENSION] = get_default_registry()

    if app.config.get('ONEFLOW_API_TOKEN') and app.config.get('ONEFLOW_USER_EMAIL'):
        app.extensions[CLIENT_EXTENSION] = OneflowClient.from_config(app.config)
    else:
        logger.warning("Oneflow credentials not set; webhook and import endpoints will fail")

    if not app.config.get('ONEFLOW_WEBHOOK_SECRET'):
        logger.warning("ONEFLOW_WEBHOOK_SECRET not set; webhook signatures will NOT be verified")

    # Register blueprints
    register_blueprints(app)

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    return app


if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        db.create_all()
    app.run(host='0.0.0.0', port=5005, debug=True)
