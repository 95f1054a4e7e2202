"""
Trial expiry sweep.

Closes out every trial whose period has ended, converting to Pro when
TRIAL_AUTO_PAY_TO_PRO is set and dropping to free otherwise. Transitions go
through the same compare-and-swap path as the API, so overlapping runs and
concurrent user requests are safe.

Usage:
    python -m padhlo.jobs.expire_trials
"""

import sys

import structlog
from sqlalchemy.orm import Session

from padhlo.application.billing.dtos import TrialSweepSummary
from padhlo.config import configure_logging, get_settings
from padhlo.core import container
from padhlo.database import dispose_engine, get_session_factory
from padhlo.infrastructure.common.di import build_with_session

logger = structlog.get_logger(__name__)


def run(session: Session) -> TrialSweepSummary | None:
    """
    Run one sweep against ``session``.

    Returns:
        Sweep summary, or None if the store was unavailable
    """
    use_case = build_with_session(container.subscription_use_case, session)

    result = use_case.expire_trials()
    if result.is_failure:
        error = result.unwrap_error()
        logger.error("trial_sweep_failed", reason=error.reason.value, error=error.message)
        return None
    return result.unwrap()


def main() -> int:
    settings = get_settings()
    configure_logging(settings.ENVIRONMENT)
    logger.info("trial_sweep_started", auto_pay_to_pro=settings.TRIAL_AUTO_PAY_TO_PRO)

    session = get_session_factory(settings)()
    try:
        summary = run(session)
    finally:
        session.close()
        dispose_engine()

    if summary is None or summary.failed:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
