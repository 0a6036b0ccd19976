"""
Reminder Cron Job: one reminder cycle outside the web process.

For deployments that trigger cycles from system cron (or a platform
scheduler) instead of the in-process APScheduler job.

Typical cron schedule: 0 9 * * 1 (Mondays at 9 AM)
"""

import asyncio
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

import httpx

from ..core.config import Settings, get_settings
from ..core.container import build_container
from ..core.database import build_engine, build_session_factory

logger = logging.getLogger(__name__)

CRITICAL_PREFIX = "Critical error:"


# =============================================================================
# ALERTING
# =============================================================================


async def send_alert(
    webhook_url: str | None,
    title: str,
    message: str,
    severity: str = "error",
    details: dict | None = None,
) -> None:
    """
    Send an alert when the cron job fails.

    Always logged; also posted to ALERT_WEBHOOK_URL (PagerDuty, Opsgenie,
    custom) when configured.
    """
    log_message = f"[CRON ALERT] {title}: {message}"
    if details:
        log_message += f" | Details: {details}"

    if severity == "critical":
        logger.critical(log_message)
    else:
        logger.error(log_message)

    if not webhook_url:
        return

    payload = {
        "title": title,
        "message": message,
        "severity": severity,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": "wiki-reminder-cron",
        "details": details or {},
    }
    try:
        async with httpx.AsyncClient() as client:
            await client.post(webhook_url, json=payload, timeout=10)
    except httpx.HTTPError as e:
        logger.error(f"Failed to send webhook alert: {e}")


# =============================================================================
# JOB
# =============================================================================


async def run_reminder_job(settings: Settings) -> dict[str, Any]:
    """
    Run one reminder cycle against ``settings.database_url``.

    Returns the cycle result plus timing. Raises only if the job itself
    crashes; a critical cycle error is reported inside the result.
    """
    start_time = datetime.now(timezone.utc)
    logger.info(f"Starting reminder job at {start_time.isoformat()}")

    engine = build_engine(settings.database_url_async)
    container = build_container(settings, build_session_factory(engine))

    try:
        result = await container.engine.run_reminder_check()
    except Exception as e:
        await send_alert(
            settings.alert_webhook_url,
            title="Reminder Cron Job Failed",
            message="The reminder job crashed unexpectedly.",
            severity="critical",
            details={
                "error": str(e),
                "traceback": traceback.format_exc()[-500:],  # Last 500 chars
                "started_at": start_time.isoformat(),
            },
        )
        raise
    finally:
        await container.aclose()
        await engine.dispose()

    end_time = datetime.now(timezone.utc)
    results = {
        **result.to_dict(),
        "started_at": start_time.isoformat(),
        "completed_at": end_time.isoformat(),
        "duration_seconds": (end_time - start_time).total_seconds(),
    }

    critical = [e for e in result.errors if e.startswith(CRITICAL_PREFIX)]
    if critical:
        await send_alert(
            settings.alert_webhook_url,
            title="Reminder Cron Job Failed",
            message=critical[0],
            severity="critical",
            details={"started_at": results["started_at"]},
        )
    elif result.errors:
        await send_alert(
            settings.alert_webhook_url,
            title="Reminder Job Completed with Warnings",
            message=f"The reminder job completed with {len(result.errors)} errors.",
            severity="warning",
            details={
                "processed": result.processed,
                "reminders": result.reminders,
                "errors": result.errors[:5],  # First 5 errors
            },
        )

    logger.info(
        f"Reminder job completed in {results['duration_seconds']:.2f}s: "
        f"{result.processed} processed, {result.reminders} reminders, "
        f"{result.escalations} escalations"
    )
    return results


def has_critical_error(results: dict[str, Any]) -> bool:
    return any(e.startswith(CRITICAL_PREFIX) for e in results.get("errors", []))


# =============================================================================
# CLI ENTRY POINT
# =============================================================================


def main():
    """CLI entry point for the reminder job."""
    import argparse

    settings = get_settings()

    parser = argparse.ArgumentParser(description="Run one wiki reminder cycle")
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="Database connection string (defaults to DATABASE_URL)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    job_settings = settings.model_copy(update={"database_url": args.database_url})

    try:
        results = asyncio.run(run_reminder_job(job_settings))
    except Exception as e:
        print(f"Job failed: {e}")
        sys.exit(1)

    print(f"Job completed: {results}")
    if has_critical_error(results):
        sys.exit(1)


if __name__ == "__main__":
    main()
