# backend/leadsearch/main.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask

import leadsearch.db as db
from leadsearch.boundaries import Authorizer
from leadsearch.config_loader import initialize_app_config, load_app_config
from leadsearch.errors import register_error_handlers
from leadsearch.logging_setup import start_log
from leadsearch.service import LeadSearch

# backend/.env, if present, never overrides the real environment
DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"

log = logging.getLogger(__name__)

EXTENSION_KEY = "lead_search"


def create_app(
    cfg: Optional[Mapping[str, Any]] = None,
    *,
    authorizer: Optional[Authorizer] = None,
    configure_logging: bool = True,
) -> Flask:
    """
    Build a Flask app carrying the lead search.

    The app defines no routes; a host application reaches the search
    through ``app.extensions["lead_search"]`` and a request session from
    :func:`leadsearch.db.session_scope`.
    """
    load_dotenv(DOTENV_PATH, override=False)
    development = os.getenv("FLASK_ENV") == "development"
    if configure_logging:
        start_log(app_name="leadsearch", level=logging.DEBUG if development else None)

    app = Flask(__name__)

    if cfg is None:
        cfg = load_app_config()
    cfg = initialize_app_config(app, cfg)

    app.extensions[EXTENSION_KEY] = LeadSearch.from_config(cfg, authorizer)
    log.info(
        "Lead search ready locale=%s table_prefix=%r",
        app.config["LOCALE"],
        app.config["TABLE_PREFIX"],
    )

    register_error_handlers(app)

    @app.teardown_appcontext
    def _db_cleanup(exc):
        db.db_cleanup(exc)

    return app


def get_lead_search(app: Flask) -> LeadSearch:
    return app.extensions[EXTENSION_KEY]
