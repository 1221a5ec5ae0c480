# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin user and, optionally, a set of
sample vessel schedule entries.

Run once after the initial migration:
    python bin/seed.py                   # admin only
    python bin/seed.py --sample-vessels  # admin + sample schedule

The script reads FIRST_ADMIN_USER_ID and FIRST_ADMIN_PASSWORD from
etc/app.conf.  After the row is inserted those values are no longer used by
the application.  Re-running is safe: existing rows are skipped.
"""

import argparse
import os
import sys
from datetime import datetime, timezone

# ---------------------------------------------------------------------------
# Path setup so the package is importable without installing it
# ---------------------------------------------------------------------------
# bin/seed.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from shipline.core.config import settings          # noqa: E402
from shipline.core.security import hash_password   # noqa: E402
from shipline.database import SessionLocal         # noqa: E402
from shipline.models.user import Role, User        # noqa: E402
from shipline.models.vessel import Vessel          # noqa: E402


def _utc(text: str) -> datetime:
    return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)


SAMPLE_VESSELS = [
    ("MSC DIANA", "DIA001E", "Panama", "Port of Hamburg", "2024-01-15T08:00", "2024-01-17T18:00"),
    ("MAERSK ESSEX", "ESX234W", "Denmark", "Port of Rotterdam", "2024-01-20T06:30", "2024-01-22T14:00"),
    ("COSCO SHANGHAI", "CSH089N", "China", "Port of Felixstowe", "2024-01-25T12:00", "2024-01-28T09:30"),
    ("CMA CGM ANTOINE DE SAINT EXUPERY", "ASE445S", "France", "Port of Southampton", "2024-02-01T10:15", "2024-02-03T16:45"),
    ("EVERGREEN EVER ACE", "ACE567E", "Taiwan", "Port of London", "2024-02-05T07:00", "2024-02-07T19:30"),
    ("HAPAG LLOYD BERLIN EXPRESS", "BER789W", "Germany", "Port of Liverpool", "2024-02-10T11:30", "2024-02-12T15:00"),
    ("ONE STORK", "STK123N", "Japan", "Port of Bristol", "2024-02-15T09:45", "2024-02-17T13:15"),
    ("YANG MING EXCELLENCE", "EXC456S", "Taiwan", "Port of Newcastle", "2024-02-20T14:20", "2024-02-22T20:00"),
    ("ZIM KINGSTON", "KIN789E", "Israel", "Port of Hull", "2024-02-25T08:30", "2024-02-27T17:45"),
    ("HYUNDAI BRAVE", "BRV321W", "South Korea", "Port of Glasgow", "2024-03-01T06:00", "2024-03-03T12:30"),
]


def seed_admin(db) -> bool:
    """Create the admin from settings.  Returns True when a row was added."""
    if not settings.first_admin_user_id or not settings.first_admin_password:
        print("[seed] FIRST_ADMIN_USER_ID or FIRST_ADMIN_PASSWORD not set in etc/app.conf – skipping admin.")
        return False

    existing = db.query(User).filter(User.user_id == settings.first_admin_user_id).first()
    if existing:
        print(f"[seed] Admin '{settings.first_admin_user_id}' already exists – skipping.")
        return False

    db.add(User(
        user_id=settings.first_admin_user_id,
        password_hash=hash_password(settings.first_admin_password),
        role=Role.ADMIN.value,
    ))
    db.commit()
    print(f"[seed] Admin '{settings.first_admin_user_id}' created successfully.")
    return True


def seed_vessels(db) -> int:
    """Insert the sample schedule, skipping (name, voyage) pairs already present."""
    created = 0
    for name, voyage, country, port, eta, etd in SAMPLE_VESSELS:
        exists = (
            db.query(Vessel)
            .filter(Vessel.vessel_name == name, Vessel.voyage_no == voyage)
            .first()
        )
        if exists:
            continue
        db.add(Vessel(
            vessel_name=name,
            voyage_no=voyage,
            country=country,
            port_name=port,
            eta=_utc(eta),
            etd=_utc(etd),
        ))
        created += 1
    db.commit()
    print(f"[seed] {created} sample vessels created ({len(SAMPLE_VESSELS) - created} already present).")
    return created


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the shipline database.")
    parser.add_argument(
        "--sample-vessels",
        action="store_true",
        help="also insert the sample vessel schedule",
    )
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        seed_admin(db)
        if args.sample_vessels:
            seed_vessels(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
