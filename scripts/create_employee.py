from __future__ import annotations

import argparse
import getpass
import importlib

from dotenv import load_dotenv

from hrms_workflow.config import get_settings_module
from hrms_workflow.core.exceptions import ValidationError
from hrms_workflow.database.connection import DBConfig, DatabaseConnection
from hrms_workflow.users.mysql_user_repository import MySQLUserRepository
from hrms_workflow.users.service import UserService


def main() -> None:
    parser = argparse.ArgumentParser(description="Create an HRMS employee account.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--full-name", required=True)
    parser.add_argument("--salary", type=float, default=0.0, help="monthly salary used for unpaid leave deductions")
    parser.add_argument("--leave-balance", type=float, help="defaults to DEFAULT_LEAVE_BALANCE")
    parser.add_argument("--password", help="prompted when omitted")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Employee password: ")

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(dict(settings.DB_CONFIG)))
    users = UserService(MySQLUserRepository(conn), default_leave_balance=settings.DEFAULT_LEAVE_BALANCE)

    try:
        user_id = users.create_account(
            full_name=args.full_name,
            username=args.username,
            password=password,
            monthly_salary=args.salary,
            leave_balance=args.leave_balance,
        )
    except ValidationError as exc:
        parser.error(exc.message)
    print(f"OK: employee '{args.username}' created (user_id={user_id}) on {conn.config.describe()}")


if __name__ == "__main__":
    main()
