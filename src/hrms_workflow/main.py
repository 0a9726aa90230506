from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .common.errors import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .leaves.controller import register as register_leaves
from .reports.controller import register as register_reports
from .users.controller import register as register_users

POLICY_SETTINGS = ("late_threshold", "min_session_minutes", "leave_day_count_rule", "default_leave_balance")


def create_app(settings_module: Optional[str] = None, *, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    level = str(getattr(settings, "LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.logger.setLevel(level)
    app.logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())

    if container is None:
        policy = {
            name: getattr(settings, name.upper())
            for name in POLICY_SETTINGS
            if hasattr(settings, name.upper())
        }
        container = build_container(db_config=db_config, **policy)

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(container.conn)
            app.logger.info("schema ready (tables=%s)", len(list_tables(container.conn)))

    register_error_handlers(app)
    register_users(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    register_reports(app, container)

    return app


if __name__ == "__main__":
    application = create_app()
    application.run(debug=application.config["DEBUG"])
