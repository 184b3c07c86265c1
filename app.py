from flask import Flask

import config
from routes.tickets import tickets_bp
from services.session_coordinator import SessionCoordinator
from services.wallet_provider import WalletProvider
from utils.async_runner import AsyncRunner
from utils.logging_setup import configure_logging


def create_app(coordinator=None, runner=None):
    """Create the Flask app around one session coordinator"""
    app = Flask(__name__)
    app.config['SECRET_KEY'] = config.SECRET_KEY

    if coordinator is None:
        coordinator = SessionCoordinator(WalletProvider.from_config())
    if runner is None:
        runner = AsyncRunner()

    app.extensions['ticketing'] = {
        'coordinator': coordinator,
        'runner': runner,
    }
    app.register_blueprint(tickets_bp)
    return app


if __name__ == '__main__':
    configure_logging()
    app = create_app()
    app.run(debug=True, host='0.0.0.0', port=config.FLASK_PORT, use_reloader=False)
