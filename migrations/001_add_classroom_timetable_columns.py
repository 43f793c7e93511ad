from __future__ import annotations

"""Add the scheduler's tables and classroom columns to an existing platform database.

The classrooms table belongs to the academics module; this adds the structure link,
the grid document and its version stamp. Safe to run multiple times (IF NOT EXISTS).

Run:
  python migrations/001_add_classroom_timetable_columns.py --yes
"""

import argparse
import sys
from pathlib import Path

# Allow running this script from any working directory.
REPO_DIR = Path(__file__).resolve().parents[1]
if str(REPO_DIR) not in sys.path:
    sys.path.insert(0, str(REPO_DIR))

from sqlalchemy import text

from timetable_backend.core.database import ENGINE


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--yes", action="store_true", help="Actually apply changes")
    args = parser.parse_args()

    statements = [
        """
        CREATE TABLE IF NOT EXISTS timetable_structures (
            id UUID PRIMARY KEY,
            tenant_id UUID NULL,
            name TEXT NOT NULL,
            description TEXT NULL,
            config JSONB NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        """,
        "CREATE INDEX IF NOT EXISTS idx_timetable_structures_tenant ON timetable_structures (tenant_id);",

        # Classroom grid columns
        """
        ALTER TABLE classrooms
            ADD COLUMN IF NOT EXISTS timetable_structure_id UUID NULL
                REFERENCES timetable_structures (id) ON DELETE SET NULL;
        """,
        "ALTER TABLE classrooms ADD COLUMN IF NOT EXISTS timetable JSONB NULL;",
        "ALTER TABLE classrooms ADD COLUMN IF NOT EXISTS timetable_version INTEGER NOT NULL DEFAULT 0;",
        "CREATE INDEX IF NOT EXISTS idx_classrooms_timetable_structure ON classrooms (timetable_structure_id);",

        # Conflict scans read every scheduled classroom of a tenant by name.
        "CREATE INDEX IF NOT EXISTS idx_classrooms_tenant_scheduled ON classrooms (tenant_id, name) WHERE timetable IS NOT NULL;",
    ]

    if ENGINE.dialect.name != "postgresql":
        print(f"Skipping: {ENGINE.dialect.name} databases are created by ensure_schema() at startup.")
        return

    if not args.yes:
        print("Dry run. Re-run with --yes to apply.")
        for s in statements:
            print("---")
            print(s.strip())
        return

    with ENGINE.begin() as conn:
        for s in statements:
            conn.execute(text(s))

    print(f"OK: applied {len(statements)} statements.")


if __name__ == "__main__":
    main()
