from __future__ import annotations

import argparse
import logging
import sys

from bootstrap import run_bootstrap

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create database tables and the default super admin.")
    parser.add_argument(
        "--skip-admin",
        action="store_true",
        help="Create tables only; do not seed DEFAULT_ADMIN_EMAIL.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logger.info("Running backend bootstrap...")
    run_bootstrap(create_admin=not args.skip_admin)
    logger.info("Bootstrap completed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
