"""
Initializes the configured questions store and prints a short summary.

Creates an empty document on the primary backend when none exists yet, which
is what the service does at startup. Useful for provisioning a bucket or disk
path before the first deploy.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from forum.config import get_settings
from forum.dependencies import build_backends
from forum.store import StoreEngine
from shared.reply_tree import iter_replies

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize the questions store")
    parser.add_argument(
        "--backends",
        type=str,
        default=None,
        help="Override STORAGE_BACKENDS, e.g. 's3,fallback'",
    )
    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Only read the store, never create the document",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = get_settings()
    if args.backends:
        settings = settings.model_copy(update={"storage_backends": args.backends})

    backends = build_backends(settings)
    logger.info("Using backends: %s", ", ".join(b.name for b in backends))
    engine = StoreEngine(backends)

    collection = engine.load() if args.check_only else engine.initialize()
    replies = sum(
        1 for question in collection.questions for _ in iter_replies(question.answers)
    )
    answered = sum(1 for q in collection.questions if q.status == "answered")
    print(
        f"{len(collection.questions)} questions ({answered} answered), "
        f"{replies} replies"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
