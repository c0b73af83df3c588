"""Blueprint registrations for application routes."""

from flask import Flask

from .assistants import blueprint as assistants_blueprint
from .calculations import blueprint as calculations_blueprint
from .config import blueprint as config_blueprint
from .localization import blueprint as localization_blueprint
from .reports import blueprint as reports_blueprint


def register_routes(app: Flask) -> None:
    """Register all Flask blueprints with the provided application."""

    app.register_blueprint(calculations_blueprint)
    app.register_blueprint(assistants_blueprint)
    app.register_blueprint(config_blueprint)
    app.register_blueprint(reports_blueprint)
    app.register_blueprint(localization_blueprint)
