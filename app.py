#!/usr/bin/env python3
"""
Run script for the asset lifecycle service
"""

import argparse
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file before the app reads its config
load_dotenv()

from asset_lifecycle import create_app  # noqa: E402
from asset_lifecycle.build import build_database  # noqa: E402
from asset_lifecycle.utils.logger import get_logger  # noqa: E402

app = create_app()
logger = get_logger("asset_lifecycle.run")


def parse_arguments():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Asset Lifecycle & Depreciation service')
    parser.add_argument('--build-only', action='store_true',
                        help='Create database tables and exit without starting the web server')
    parser.add_argument('--sample-data', action='store_true',
                        help='Insert reference business units and categories while building')
    parser.add_argument('--run-depreciation', action='store_true',
                        help='Run the depreciation batch for today and exit')
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_arguments()

    with app.app_context():
        build_database(sample_data=args.sample_data)

        if args.run_depreciation:
            from asset_lifecycle.buisness.depreciation.scheduler import DepreciationScheduler

            summary = DepreciationScheduler().run_batch(actor_id=app.config['DEPRECIATION_DEFAULT_ACTOR_ID'])
            logger.info(f"Depreciation batch: {summary.to_dict()['total_depreciation']} posted")
            sys.exit(1 if summary.failed else 0)

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    # FLASK_DEBUG: Enable/disable debug mode (default: False for security)
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')
    # FLASK_HOST: Server host (default: 127.0.0.1 for security)
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    # FLASK_PORT: Server port (default: 5000)
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting server on {host}:{port} (debug={debug_mode})")
    app.run(debug=debug_mode, host=host, port=port)
