"""Comp-time reconciliation job.

Compares every stored balance with the signed sum of its ledger rows and
logs any drift. Intended for cron or a one-off container run:

    python -m hr_admin.reconcile

Exits with status 1 when at least one balance disagrees with its ledger.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from hr_admin.config import get_settings
from hr_admin.db import dispose_engine, get_session_factory
from hr_admin.schemas.comp_time import ReconciliationReport

logger = logging.getLogger(__name__)


async def run_reconciliation() -> ReconciliationReport:
    """Run one reconciliation pass in its own session."""
    from hr_admin.services.comp_time import reconcile_balances

    session_factory = get_session_factory()
    try:
        async with session_factory() as session:
            report = await reconcile_balances(session)
    finally:
        await dispose_engine()

    if report.consistent:
        logger.info("Comp-time reconciliation clean: checked=%d", report.checked)
    else:
        logger.error(
            "Comp-time reconciliation found drift: checked=%d drifted=%d",
            report.checked,
            len(report.drifts),
        )
    return report


def main() -> None:
    """Entry point for the reconciliation job."""
    logging.basicConfig(level=get_settings().log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    report = asyncio.run(run_reconciliation())
    sys.exit(0 if report.consistent else 1)


if __name__ == "__main__":
    main()
