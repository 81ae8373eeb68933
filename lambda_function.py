"""AWS Lambda handler for scheduled calendar cleanup."""
import json
import logging
import os
import time
from typing import Any, Dict, Mapping, Optional, Tuple

from notifier.ses_notifier import SesNotifier
from processor.errors import ConfigurationError
from processor.models import Configuration
from processor.run_coordinator import RunCoordinator
from provider.google_calendar import GoogleCalendarProvider
from storage.backup_sink import DynamoDBBackupSink


DEFAULT_TIMEOUT_SECONDS = 30

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord('', logging.INFO, '', 0, '', None, None))
) | {'message', 'asctime'}

# Chatty SDK loggers kept at WARNING unless the run itself is at DEBUG
_QUIET_LOGGERS = ('botocore', 'boto3', 'urllib3')


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with ``extra`` fields promoted to keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and not key.startswith('_'):
                payload[key] = value

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Route all logging through a single JSON stream handler.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()

    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)

    json_handler = logging.StreamHandler()
    json_handler.setFormatter(JsonFormatter())
    root_logger.addHandler(json_handler)
    root_logger.setLevel(level)

    sdk_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)


_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name, '').strip().lower()
    if not value:
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got '{value}'")


def _env_int(environ: Mapping[str, str], name: str) -> Optional[int]:
    value = environ.get(name, '').strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{value}'")


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    value = environ.get(name, '').strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{value}'")


def _env_list(environ: Mapping[str, str], name: str) -> Tuple[str, ...]:
    return tuple(
        item.strip() for item in environ.get(name, '').split(',') if item.strip()
    )


def load_config(environ: Mapping[str, str]) -> Configuration:
    """
    Build a Configuration from environment variables.

    Unset variables fall back to the Configuration defaults.

    Args:
        environ: Environment mapping (usually os.environ)

    Returns:
        Configuration instance

    Raises:
        ConfigurationError: If a variable cannot be parsed
    """
    defaults = Configuration()

    def int_or_default(name: str, default: int) -> int:
        value = _env_int(environ, name)
        return default if value is None else value

    return Configuration(
        days_to_keep=_env_int(environ, 'DAYS_TO_KEEP'),
        months_to_keep=_env_int(environ, 'MONTHS_TO_KEEP'),
        years_to_keep=_env_int(environ, 'YEARS_TO_KEEP'),
        dry_run=_env_bool(environ, 'DRY_RUN', defaults.dry_run),
        max_deletes_per_run=int_or_default('MAX_DELETES_PER_RUN', defaults.max_deletes_per_run),
        pause_seconds=_env_float(environ, 'PAUSE_SECONDS', defaults.pause_seconds),
        delete_recurring=_env_bool(environ, 'DELETE_RECURRING', defaults.delete_recurring),
        skip_all_day=_env_bool(environ, 'SKIP_ALL_DAY', defaults.skip_all_day),
        skip_with_attendees=_env_bool(
            environ, 'SKIP_WITH_ATTENDEES', defaults.skip_with_attendees
        ),
        exclude_keywords=_env_list(environ, 'EXCLUDE_KEYWORDS'),
        include_keywords=_env_list(environ, 'INCLUDE_KEYWORDS'),
        min_title_length=int_or_default('MIN_TITLE_LENGTH', defaults.min_title_length),
        calendars_to_process=_env_list(environ, 'CALENDARS_TO_PROCESS'),
        calendars_to_exclude=_env_list(environ, 'CALENDARS_TO_EXCLUDE'),
        build_report=_env_bool(environ, 'BUILD_REPORT', defaults.build_report),
        email_report=_env_bool(environ, 'EMAIL_REPORT', defaults.email_report),
        email_recipient=environ.get('EMAIL_RECIPIENT', '').strip(),
        create_backup=_env_bool(environ, 'CREATE_BACKUP', defaults.create_backup),
        backup_table_prefix=(
            environ.get('BACKUP_TABLE_PREFIX', '').strip() or defaults.backup_table_prefix
        ),
        max_sample_events=int_or_default('MAX_SAMPLE_EVENTS', defaults.max_sample_events),
        max_backup_rows=int_or_default('MAX_BACKUP_ROWS', defaults.max_backup_rows),
        permission_phrases=(
            _env_list(environ, 'PERMISSION_PHRASES') or defaults.permission_phrases
        ),
    )


def _analysis_requested(event: Any) -> bool:
    if not isinstance(event, dict):
        return False
    return event.get('mode') == 'analyze' or event.get('dry_run') is True


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for calendar cleanup.

    Args:
        event: EventBridge event payload; {"mode": "analyze"} forces a dry run
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    log_level = os.environ.get('LOG_LEVEL', 'INFO')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info("Lambda execution started")

    try:
        config = load_config(os.environ)
        timeout_seconds = _env_int(os.environ, 'TIMEOUT_SECONDS') or DEFAULT_TIMEOUT_SECONDS
        if _analysis_requested(event):
            logger.info("Analysis requested; forcing dry run")
            config = config.simulated()

        provider = GoogleCalendarProvider(
            access_token=os.environ.get('GOOGLE_ACCESS_TOKEN', ''),
            timeout=timeout_seconds
        )

        backup_sink = None
        if config.create_backup and not config.dry_run:
            backup_sink = DynamoDBBackupSink()

        notifier = None
        if config.email_report and config.email_recipient:
            sender = os.environ.get('SENDER_EMAIL', '') or config.email_recipient
            notifier = SesNotifier(sender=sender)

        coordinator = RunCoordinator(provider, backup_sink=backup_sink, notifier=notifier)
        result = coordinator.run(config)

    except ConfigurationError as e:
        duration = time.time() - start_time
        logger.error(f"Invalid configuration: {e}")
        return {
            'statusCode': 400,
            'body': json.dumps({
                'message': 'Invalid configuration',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Cleanup failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }

    duration = time.time() - start_time
    logger.info(
        "Lambda execution completed",
        extra={
            'duration_seconds': round(duration, 2),
            'events_deleted': result.deleted,
            'errors': result.errors
        }
    )

    if result.aborted_reason == 'no_calendars':
        message = 'No calendars matched the configuration'
    else:
        message = 'Cleanup completed'

    body = {
        'message': message,
        'dry_run': result.dry_run,
        'statistics': {
            'calendars_processed': len(result.calendar_results),
            'events_processed': result.processed,
            'events_deleted': result.deleted,
            'events_skipped': result.skipped,
            'errors': result.errors,
            'duration_seconds': round(duration, 2)
        },
        'backup_id': result.backup_id,
        'errors': result.error_log
    }
    if config.build_report:
        body['report'] = coordinator.last_summary

    return {
        'statusCode': 200,
        'body': json.dumps(body)
    }
