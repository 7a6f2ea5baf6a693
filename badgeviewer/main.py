"""
Badge Viewer - command line entry point.

Loads the global badge catalog, enriches it with BadgeBase metadata and
logs what is currently earnable.
"""

from __future__ import annotations

import sys

from PyQt6.QtCore import QCoreApplication

from badgeviewer.config import config
from badgeviewer.core.badge import AvailabilityStatus
from badgeviewer.core.errors import BadgeEngineError
from badgeviewer.core.logging import logger, setup_logging
from badgeviewer.services.availability_service import status_for
from badgeviewer.services.badge_catalog_service import BadgeCatalogService
from badgeviewer.version import __app_name__, __version__

__all__ = ["main"]


def main(argv: list[str] | None = None) -> int:
    """Main application execution flow.

    Args:
        argv: Command line arguments; ``--refresh`` forces a catalog refresh.

    Returns:
        Process exit code.
    """
    argv = sys.argv if argv is None else argv

    # 1. Setup logging
    setup_logging(log_file=config.LOG_FILE)
    logger.info("%s %s", __app_name__, __version__)

    # 2. Qt application for the enrichment threads
    app = QCoreApplication.instance() or QCoreApplication(argv)
    app.setApplicationName(__app_name__)

    # 3. Catalog and metadata
    service = BadgeCatalogService()
    try:
        badges = service.load_catalog(force_refresh="--refresh" in argv)
        service.enrich()
        service.discover_missing()

        available = [b for b in service.sorted_badges() if status_for(b) is AvailabilityStatus.AVAILABLE]
        logger.info("%d badges in catalog, %d available now", len(badges), len(available))
        for badge in available:
            logger.info("  %s (%s)", badge.title, badge.key)

        # 4. Collection summary for the configured viewer
        if config.TWITCH_USER_ID:
            summary = service.summarize_collection()
            rank = summary.rank.name if summary.rank else "Unranked"
            logger.info("Collection: %d/%d (%.1f%%) %s", summary.collected, summary.total, summary.percentage, rank)
    except BadgeEngineError as e:
        logger.error("Could not load badges: %s", e)
        return 1
    finally:
        service.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
