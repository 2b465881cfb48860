from flask import Flask
from onco_records.extensions import db, migrate, limiter, cors
from onco_records.utils.error_handlers import register_error_handlers
from onco_records.commands import register_commands
import os
from config import config

def create_app(config_name=None, overrides=None):
    app = Flask(__name__)

    config_name = config_name or os.getenv('FLASK_CONFIG', 'default')
    config_class = config[config_name]
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors.init_app(
        app,
        origins=app.config['ALLOWED_ORIGINS'],
        allow_headers=['Content-Type', 'Authorization', 'X-Requested-With'],
        methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']
    )

    # Initialize app with config
    config_class.init_app(app)

    # Make every model known to the metadata before create_all/migrations
    from onco_records import models  # noqa: F401

    # Register blueprints
    from onco_records.api import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    # Register error handlers and commands
    register_error_handlers(app)
    register_commands(app)

    return app
