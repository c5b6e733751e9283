# Provision an Employee account. Signup over HTTP only ever creates Clients.
import getpass

from sqlalchemy import Engine

from paygate.core.accounts import AccountService
from paygate.core.cipher import FieldCipher
from paygate.core.credentials import CredentialManager
from paygate.core.errors import UsernameTaken, ValidationError
from paygate.core.tokens import TokenService
from paygate.models.schema import Role, User
from paygate.shared import load_config
from paygate.shared.store import Repository

config = load_config()


def create_employee(engine: Engine, fields: dict):
    accounts = AccountService(
        Repository(engine, User),
        FieldCipher.from_config(config.security),
        CredentialManager.from_config(config.security),
        TokenService.from_config(config.security),
    )

    try:
        employee = accounts.register(fields, role=Role.EMPLOYEE)
    except ValidationError as e:
        print(f"[!] {e.detail}")
        return
    except UsernameTaken:
        print(f"[!] Username '{fields['username']}' already exists")
        return

    print(f"[✔] Created employee '{employee.username}' (id: {employee.id})")


if __name__ == "__main__":
    import argparse

    from paygate.shared.db import build_engine, engine

    def parse_args():
        parser = argparse.ArgumentParser(description="Create an Employee account")
        parser.add_argument("username", type=str, help="Login name for the employee")
        parser.add_argument("full_name", type=str, help="Employee's full name")
        parser.add_argument("account_number", type=str, help="6-20 digit account number")
        parser.add_argument("national_id_number", type=str, help="13 digit ID number")
        parser.add_argument("--db", type=str, help="Database URL override")
        return parser.parse_args()

    args = parse_args()
    if args.db:
        engine = build_engine(args.db)

    create_employee(
        engine,
        {
            "username": args.username,
            "full_name": args.full_name,
            "account_number": args.account_number,
            "national_id_number": args.national_id_number,
            "password": getpass.getpass("Password: "),
        },
    )
