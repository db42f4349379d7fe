from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.nfc_attendance.nfc_attendance.database.bootstrap import seed_users

logger = logging.getLogger("seed_db")


def main() -> None:
    parser = argparse.ArgumentParser(description="Upsert demo people from a JSON seed file.")
    parser.add_argument("--seed", default=str(REPO_ROOT / "database" / "users_seed.json"))
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    count = seed_users(db_config, seed_path=args.seed)
    logger.info("Seeded %d users -> %s/%s", count, db_config.get("host"), db_config.get("database"))


if __name__ == "__main__":
    main()
