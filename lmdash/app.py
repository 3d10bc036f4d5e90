"""Application factory for the learning-model dashboard."""

from __future__ import annotations

import logging

from typing import Any, Mapping, Optional, Union

from flask import Flask

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("lmdash")

from .config import Config
from .routes.dashboard import bp as dashboard_bp
from .services.dashboard import DashboardContext
from .services.datastore import RecordStore
from .services.geography import Geography
from .services.legend import Legend


def create_app(
    config_object: Optional[Union[str, Mapping[str, Any], type]] = None,
) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    if config_object is None:
        app.config.from_object(Config)
    elif isinstance(config_object, Mapping):
        app.config.from_object(Config)
        app.config.from_mapping(config_object)
    else:
        app.config.from_object(config_object)

    legend = Legend(app.config["LEARNING_MODELS"])
    store = RecordStore(app.config)
    dashboard = DashboardContext(store, legend, app.config)

    app.extensions["legend"] = legend
    app.extensions["datastore"] = store
    app.extensions["dashboard"] = dashboard
    app.extensions["geography"] = Geography(app.config)

    app.register_blueprint(dashboard_bp)

    return app


__all__ = ["create_app"]
