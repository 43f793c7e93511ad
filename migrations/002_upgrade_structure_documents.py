from __future__ import annotations

"""Rewrite stored structure configs at the current schema version.

Reads already migrate legacy documents on the fly; this makes the upgrade permanent
so the stored JSON no longer carries the old `type` field or a missing workingDays.

Run:
  python migrations/002_upgrade_structure_documents.py --yes
"""

import argparse
import sys
from pathlib import Path

# Allow running this script from any working directory.
REPO_DIR = Path(__file__).resolve().parents[1]
if str(REPO_DIR) not in sys.path:
    sys.path.insert(0, str(REPO_DIR))

from sqlalchemy import select

from timetable_backend.core.database import SessionLocal
from timetable_backend.models import TimetableStructure
from timetable_backend.services.documents import CURRENT_SCHEMA_VERSION, load_structure_config


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--yes", action="store_true", help="Actually apply changes")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        stale = []
        for structure in db.execute(select(TimetableStructure)).scalars().all():
            if (structure.config or {}).get("schemaVersion") == CURRENT_SCHEMA_VERSION:
                continue
            stale.append(structure)
            print(f"{structure.id}  {structure.name!r}  schemaVersion={(structure.config or {}).get('schemaVersion')}")

        if not stale:
            print("OK: every structure is already at the current schema version.")
            return

        if not args.yes:
            print(f"Dry run: {len(stale)} structure(s) to upgrade. Re-run with --yes to apply.")
            return

        for structure in stale:
            structure.config = load_structure_config(structure.config).to_document()
        db.commit()
        print(f"OK: upgraded {len(stale)} structure(s) to schemaVersion={CURRENT_SCHEMA_VERSION}.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
