from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from punch_clock.core.enums import Role
from punch_clock.database.bootstrap import DEMO_SUBJECTS, ensure_demo_subjects
from punch_clock.identity.service import SignedTokenIdentityService


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ids = ensure_demo_subjects(db_config)
    identity = SignedTokenIdentityService(settings.SECRET_KEY, max_age=int(getattr(settings, "TOKEN_MAX_AGE", 3600)))

    print(
        "OK: Seeded subjects -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )
    # Demo bearer tokens so the API can be exercised with curl right away.
    for subject_id, (name, _, role) in zip(ids, DEMO_SUBJECTS):
        print(f"  {subject_id:>4}  {name:<16} {role:<9} {identity.issue(subject_id, Role(role))}")


if __name__ == "__main__":
    main()
