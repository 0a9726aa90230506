from __future__ import annotations

import importlib

from dotenv import load_dotenv

from hrms_workflow.config import get_settings_module
from hrms_workflow.database.bootstrap import apply_schema, list_tables
from hrms_workflow.database.connection import DBConfig, DatabaseConnection


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(dict(settings.DB_CONFIG)))

    apply_schema(conn)
    tables = list_tables(conn)
    print(f"OK: Applied schema.sql -> {conn.config.describe()} (tables={len(tables)})")


if __name__ == "__main__":
    main()
