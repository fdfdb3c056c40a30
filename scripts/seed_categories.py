"""
Seed the default product categories.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from herbs_backend.config import get_settings
from herbs_backend.db import DocumentStoreError, MongoDocumentStore
from herbs_backend.services import DEFAULT_CATEGORIES, seed_categories

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed default categories")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Seed missing defaults even when other categories exist",
    )
    parser.add_argument(
        "--mongodb-uri",
        type=str,
        default=None,
        help="Override MONGODB_URI",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    settings = get_settings()
    uri = args.mongodb_uri or settings.mongodb_uri
    if not uri:
        logger.error("MONGODB_URI is not set")
        return 1

    store = MongoDocumentStore(uri, settings.mongodb_database)
    try:
        created = seed_categories(store, DEFAULT_CATEGORIES, force=args.force)
    except DocumentStoreError as exc:
        logger.error("Seeding failed: %s", exc)
        return 1
    finally:
        store.client.close()

    logger.info("Seeded %d categories", len(created))
    return 0


if __name__ == "__main__":
    sys.exit(main())
