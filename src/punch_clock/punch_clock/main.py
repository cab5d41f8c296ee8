from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .adjustments.controller import register as register_adjustments
from .common.http import ok
from .container import Container, build_container
from .core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_TOKEN_MAX_AGE, HEALTH_PATH
from .core.logging_config import configure_logging, get_logger
from .database.bootstrap import apply_schema, ensure_demo_subjects, list_tables
from .punches.controller import register as register_punches

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(*, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", None), json_format=bool(getattr(settings, "LOG_JSON", False)))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_subjects(db_config)

        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            token_max_age=int(getattr(settings, "TOKEN_MAX_AGE", DEFAULT_TOKEN_MAX_AGE)),
            history_limit=int(getattr(settings, "HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT)),
        )

    @app.route(HEALTH_PATH, methods=["GET"], endpoint="health")
    def health():
        return ok({"status": "ok"})

    register_punches(app, container)
    register_adjustments(app, container)

    return app
