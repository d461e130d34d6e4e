"""Command that runs the Vestro import job once."""

from __future__ import annotations

import argparse
import logging
import sys

from vestro import config
from vestro.importer import ImporterService
from vestro.notifier import GrailsNotifier
from vestro.users import AgriwinUserProvider
from vestro.vestro_api import ApiClient

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Load the configuration, run the import and return the exit status."""
    parser = argparse.ArgumentParser(
        prog="vestro",
        description="Import Vestro data for every producer and send it to Agriwin. "
        "Settings come from the environment or a .env file.",
    )
    parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    cfg = config.load()
    if not cfg.grails_app_url:
        logger.error("Essential environment variables (GRAILS_APP_URL) are not set.")
        return 1

    service = ImporterService(
        ApiClient(cfg.vestro_base_url),
        GrailsNotifier(cfg.grails_app_url),
        AgriwinUserProvider(cfg.agriwin_users_url),
        cfg.fetch_data_since,
    )

    try:
        service.run_import()
    except Exception as exc:
        logger.error("Job execution failed: %s", exc)
        return 1

    logger.info("Job completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())