from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from punch_clock.database.bootstrap import SCHEMA_TABLES, apply_schema, list_tables


def main() -> int:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")

    present = set(list_tables(db_config))
    missing = [t for t in SCHEMA_TABLES if t not in present]
    for table in SCHEMA_TABLES:
        print(f"  {table:<20} {'ok' if table in present else 'MISSING'}")
    if missing:
        print(f"FAILED: {target} is missing {', '.join(missing)}")
        return 1
    print(f"Punch clock schema ready on {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
