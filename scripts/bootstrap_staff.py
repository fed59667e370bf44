#!/usr/bin/env python3
"""
Create a staff member or reset an existing one's password, straight against the database.
Needed once to create the first senior-lead (staff CRUD over the API requires an SL).
Run from the project root: python scripts/bootstrap_staff.py 12345678 --name "Ada Lovelace" --role SL
"""
import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main(argv=None) -> int:
    from laportal.database import SessionLocal, init_sqlite_db
    from laportal.models.staff import Staff
    from laportal.models.types import STAFF_ROLES
    from laportal.schemas.auth import validate_new_password
    from laportal.services.auth import hash_password
    from laportal.services.identity import NUID_RE

    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("nuid")
    parser.add_argument("--name", help="required when creating")
    parser.add_argument("--email")
    parser.add_argument("--role", choices=[r.value for r in STAFF_ROLES], default="SL")
    args = parser.parse_args(argv)

    if not NUID_RE.match(args.nuid):
        print("FAIL nuid must be 7 to 10 digits")
        return 1
    password = getpass.getpass("New password: ")
    try:
        validate_new_password(password)
    except ValueError as e:
        print(f"FAIL {e}")
        return 1

    init_sqlite_db()
    db = SessionLocal()
    try:
        staff = db.get(Staff, args.nuid)
        if staff is None:
            if not args.name:
                print("FAIL --name is required to create a staff member")
                return 1
            staff = Staff(
                nuid=args.nuid,
                name=args.name,
                email=args.email.lower() if args.email else None,
                role=args.role,
                is_active=True,
            )
            db.add(staff)
            action = "created"
        else:
            action = "password reset"
        staff.password_hash = hash_password(password)
        db.commit()
        print(f"OK {staff.nuid} ({staff.role}) {action}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
