#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from dotenv import load_dotenv

from freelancehub.auth.local import register_local
from freelancehub.core.errors import AlreadyExists, InvalidRole
from freelancehub.infra import db as dbmod


def main() -> None:
    load_dotenv()
    dbmod.configure()
    dbmod.init_db()

    email = input("Email: ").strip()
    role = (input("Role [client/freelancer]: ").strip().lower() or "client")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    session = dbmod.SessionLocal()
    try:
        account = register_local(session, email, pw1, role)
    except (AlreadyExists, InvalidRole, ValueError) as e:
        raise SystemExit(str(e))
    finally:
        session.close()
    print(f"OK -> {account.role.value} id={account.id} ({account.email})")


if __name__ == "__main__":
    main()
