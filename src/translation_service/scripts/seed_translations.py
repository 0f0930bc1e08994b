"""Bulk-seed random translations for load and export testing.

Usage:
    python -m translation_service.scripts.seed_translations --count 100000

Rows are inserted in batches, one transaction per batch. Keys carry a
random suffix so the script can be run repeatedly against the same table.
"""

import argparse
import random
import string
import time
from typing import Any
import uuid

from sqlalchemy import insert

from translation_service.core.base_models import utcnow
from translation_service.core.logging import get_logger, setup_logging
from translation_service.core.uow import atomic
from translation_service.translations import Translation

logger = get_logger(__name__)

LOCALES = ("en", "fr", "es", "de", "it")
TAGS = ("mobile", "desktop", "web", "api")

_WORDS = (
    "account", "save", "cancel", "settings", "profile", "welcome", "back",
    "error", "loading", "continue", "delete", "confirm", "search", "help",
    "payment", "order", "status", "update", "message", "notification",
)


def _sentence(rng: random.Random) -> str:
    words = rng.choices(_WORDS, k=rng.randint(3, 9))
    return " ".join(words).capitalize() + "."


def _key(rng: random.Random) -> str:
    suffix = "".join(rng.choices(string.ascii_lowercase, k=6))
    return f"key_{suffix}_{uuid.uuid4().hex[:8]}"


def build_rows(count: int, rng: random.Random) -> list[dict[str, Any]]:
    """Random translation rows ready for a bulk INSERT."""
    now = utcnow()
    return [
        {
            "locale": rng.choice(LOCALES),
            "key": _key(rng),
            "value": _sentence(rng),
            "tags": rng.sample(TAGS, k=rng.randint(1, 3)),
            "created_at": now,
            "updated_at": now,
        }
        for _ in range(count)
    ]


def seed(count: int, batch_size: int, seed_value: int | None = None) -> int:
    """Insert ``count`` translations in batches of ``batch_size``.

    Rows go straight to the table and no write listeners run, so a running
    server keeps serving its cached export until its TTL expires.

    Returns:
        Number of rows inserted
    """
    if count < 0 or batch_size < 1:
        raise ValueError("count must be >= 0 and batch_size >= 1")

    rng = random.Random(seed_value)
    inserted = 0
    while inserted < count:
        rows = build_rows(min(batch_size, count - inserted), rng)
        with atomic() as uow:
            uow.session.execute(insert(Translation), rows)
        inserted += len(rows)
        logger.info("seed_batch_inserted", inserted=inserted, total=count)
    return inserted


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed random translations")
    parser.add_argument(
        "--count", type=int, default=100_000, help="Rows to insert (default 100000)"
    )
    parser.add_argument(
        "--batch-size", type=int, default=5_000, help="Rows per transaction"
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Random seed for reproducible runs"
    )
    args = parser.parse_args()

    setup_logging()
    started = time.perf_counter()
    inserted = seed(args.count, args.batch_size, args.seed)
    logger.info(
        "seed_completed",
        count=inserted,
        duration_s=round(time.perf_counter() - started, 2),
    )


if __name__ == "__main__":
    main()
