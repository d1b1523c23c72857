"""Command line entry point for managing a vocabulary store."""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from vocabsrs import __version__
from vocabsrs.config import settings
from vocabsrs.logging_config import setup_logging
from vocabsrs.models.base import SessionLocal, init_db
from vocabsrs.monitoring import start_monitoring
from vocabsrs.services.learning_service import LearningService
from vocabsrs.services.srs_service import system_clock

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vocabsrs", description="Vocabulary spaced-repetition store")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    import_parser = subparsers.add_parser("import", help="Import word|meaning|example|translation lines")
    import_parser.add_argument("file", type=Path)
    import_parser.add_argument("--user", required=True)
    import_parser.add_argument("--category", default=None)

    overview_parser = subparsers.add_parser("overview", help="Show today's numbers")
    overview_parser.add_argument("--user", required=True)

    due_parser = subparsers.add_parser("due", help="List words due for review")
    due_parser.add_argument("--user", required=True)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(f"Starting vocabsrs v{__version__} ...", args.log_level)

    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)
        logger.info(f"Metrics served on port {settings.monitoring.port}")

    init_db()
    if args.command == "init-db":
        logger.info(f"Database ready at {settings.database.url}")
        return 0

    db = SessionLocal()
    try:
        service = LearningService(db)
        if args.command == "import":
            text = args.file.read_text(encoding="utf-8")
            try:
                words = service.word_service.import_words(args.user, text, category=args.category)
            except ValueError as e:
                logger.error(f"Import failed: {e}")
                return 1
            print(f"Imported {len(words)} words")
        elif args.command == "overview":
            for key, value in service.get_overview(args.user).items():
                print(f"{key}: {value}")
        elif args.command == "due":
            words = service.word_service.get_all_words(args.user)
            for word in service.scheduler.due_words(words, system_clock()):
                print(f"{word.word} - {word.meaning} (stage {word.stage}, {word.status.value})")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
