#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0

"""
Clear cached dashboard reports.

Examples:
    python api/scripts/clear_report_cache.py --role purok_leader --zone P1
    python api/scripts/clear_report_cache.py --zone P1
    python api/scripts/clear_report_cache.py --all --yes
"""

import sys
import os
import argparse
import logging
from typing import Optional, List

# Add the parent directory to the path so we can import from api
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.enums import UserRole
from services.cache import create_report_cache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Clear cached dashboard reports")
    parser.add_argument("--role", choices=[role.value for role in UserRole],
                        help="Clear entries cached for this caller role")
    parser.add_argument("--zone",
                        help="Purok ID; with --role clears that caller, alone clears the purok")
    parser.add_argument("--all", dest="clear_all", action="store_true",
                        help="Clear every cached report (default when nothing else is given)")
    parser.add_argument("--yes", action="store_true",
                        help="Do not ask for confirmation")
    return parser


def confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def main(argv: Optional[List[str]] = None) -> int:
    """Clear report cache entries; returns a process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.clear_all and (args.role or args.zone):
        parser.error("--all cannot be combined with --role or --zone")

    report_cache = create_report_cache()
    logger.info(f"Using {report_cache.backend_name} report cache backend")
    if report_cache.backend_name in ("memory", "none"):
        logger.warning(
            f"The {report_cache.backend_name} backend is local to this process; "
            "reports cached by running API servers are not cleared. Set REDIS_URL to reach the shared cache"
        )

    if args.role:
        removed = report_cache.invalidate_caller(args.role, args.zone)
        logger.info(f"Cleared {removed} cached reports for {args.role}:{args.zone or 'all'}")
        return 0

    if args.zone:
        removed = report_cache.invalidate_zone(args.zone)
        logger.info(f"Cleared {removed} cached reports affected by purok {args.zone}")
        return 0

    if not args.yes and not confirm("Clear ALL cached dashboard reports?"):
        logger.info("Aborted, nothing cleared")
        return 1

    removed = report_cache.invalidate_all()
    logger.info(f"Cleared all {removed} cached reports")
    return 0


if __name__ == "__main__":
    sys.exit(main())
