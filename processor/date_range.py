"""Date range calculation and configuration validation."""
import logging
from datetime import datetime, timedelta, timezone
from typing import List

from dateutil.relativedelta import relativedelta

from processor.errors import ConfigurationError
from processor.models import Configuration, DateRange

logger = logging.getLogger(__name__)

# Lower bound of every scan window
EPOCH_START = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Oldest cutoff representable with a one-day start before it
EARLIEST_CUTOFF = datetime.min.replace(tzinfo=timezone.utc) + timedelta(days=1)

# Live runs above this cap only produce a warning
SOFT_DELETE_THRESHOLD = 1000


def validate_config(config: Configuration) -> List[str]:
    """
    Check a configuration before any calendar access happens.

    Args:
        config: Configuration to validate

    Returns:
        List of non-fatal warning messages

    Raises:
        ConfigurationError: If no time window is set or a limit is negative
    """
    windows = {
        'days_to_keep': config.days_to_keep,
        'months_to_keep': config.months_to_keep,
        'years_to_keep': config.years_to_keep,
    }
    if all(value is None for value in windows.values()):
        raise ConfigurationError(
            "One of days_to_keep, months_to_keep or years_to_keep must be set"
        )

    for name, value in windows.items():
        if value is not None and value < 0:
            raise ConfigurationError(f"{name} must not be negative: {value}")

    if config.max_deletes_per_run < 0:
        raise ConfigurationError(
            f"max_deletes_per_run must not be negative: {config.max_deletes_per_run}"
        )
    if config.pause_seconds < 0:
        raise ConfigurationError(
            f"pause_seconds must not be negative: {config.pause_seconds}"
        )

    warnings = []
    if config.email_report and not config.email_recipient:
        warnings.append("Email report requested but no recipient is configured")
    if not config.dry_run and config.delete_recurring:
        warnings.append("Live mode will delete instances of recurring events")
    if not config.dry_run and config.max_deletes_per_run > SOFT_DELETE_THRESHOLD:
        warnings.append(
            f"Live mode allows {config.max_deletes_per_run} deletions per run "
            f"(more than {SOFT_DELETE_THRESHOLD})"
        )

    for warning in warnings:
        logger.warning(f"Configuration warning: {warning}")

    return warnings


def compute_date_range(config: Configuration, now: datetime) -> DateRange:
    """
    Derive the scan window from the configured retention period.

    Days take precedence over months, months over years.

    Args:
        config: Validated configuration
        now: Current time (naive values are treated as UTC)

    Returns:
        DateRange with start, cutoff and now
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    try:
        if config.days_to_keep is not None:
            cutoff = now - timedelta(days=config.days_to_keep)
        elif config.months_to_keep is not None:
            cutoff = now - relativedelta(months=config.months_to_keep)
        elif config.years_to_keep is not None:
            cutoff = now - relativedelta(years=config.years_to_keep)
        else:
            cutoff = now
    except (OverflowError, ValueError):
        logger.warning("Retention window reaches past the earliest date; clamping cutoff")
        cutoff = EARLIEST_CUTOFF

    cutoff = max(cutoff, EARLIEST_CUTOFF)

    start = EPOCH_START
    if cutoff <= start:
        start = cutoff - timedelta(days=1)

    return DateRange(start=start, cutoff=cutoff, now=now)
