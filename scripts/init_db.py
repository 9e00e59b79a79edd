"""Create the ledger tables and check they are all there."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.qrattend.qrattend.database.bootstrap import apply_schema, list_tables

REQUIRED_TABLES = ("students", "attendance_records")


def main() -> int:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")

    tables = set(list_tables(db_config))
    missing = [t for t in REQUIRED_TABLES if t not in tables]
    if missing:
        print(f"FAILED: {target} is missing table(s): {', '.join(missing)}")
        return 1

    print(f"OK: ledger schema ready -> {target} (tables={len(tables)})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
