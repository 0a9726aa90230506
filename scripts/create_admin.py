from __future__ import annotations

import argparse
import getpass
import importlib

from dotenv import load_dotenv

from hrms_workflow.config import get_settings_module
from hrms_workflow.database.bootstrap import ensure_admin
from hrms_workflow.database.connection import DBConfig, DatabaseConnection


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or reset the HRMS admin account.")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--full-name", default="Administrator")
    parser.add_argument("--password", help="prompted when omitted")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Admin password: ")
    if len(password) < 6:
        parser.error("password must be at least 6 characters")

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(dict(settings.DB_CONFIG)))

    user_id = ensure_admin(conn, full_name=args.full_name, username=args.username, password=password)
    print(f"OK: admin '{args.username}' ready (user_id={user_id}) on {conn.config.describe()}")


if __name__ == "__main__":
    main()
