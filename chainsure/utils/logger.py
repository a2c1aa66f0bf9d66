"""
Logging
-------
One `chainsure` logger for the whole service.

- DEBUG: plain human-readable lines on stdout
- otherwise: one JSON object per line; `log_event` payloads are merged into it
- LOG_FILE: rotating copy of the JSON stream
- CLOUDWATCH_LOG_GROUP: records also shipped to CloudWatch Logs (boto3)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from chainsure.config import config


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "wallet": getattr(record, "wallet", "anonymous"),
        }
        message = record.getMessage()
        try:
            payload = json.loads(message)
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            entry.update(payload)
        else:
            entry["message"] = message
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class CloudWatchHandler(logging.Handler):
    """Ships formatted records to one CloudWatch log stream."""

    def __init__(self, log_group: str, log_stream: str, region: Optional[str] = None, client=None):
        super().__init__()
        self.log_group = log_group
        self.log_stream = log_stream
        self.client = client or boto3.client("logs", region_name=region or config.AWS_REGION)
        self.setFormatter(JSONFormatter())
        try:
            self.client.create_log_stream(logGroupName=log_group, logStreamName=log_stream)
        except self.client.exceptions.ResourceAlreadyExistsException:
            pass

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.client.put_log_events(
                logGroupName=self.log_group,
                logStreamName=self.log_stream,
                logEvents=[{"timestamp": int(record.created * 1000), "message": self.format(record)}],
            )
        except (BotoCoreError, ClientError):
            self.handleError(record)


def configure_logger() -> logging.Logger:
    log = logging.getLogger("chainsure")
    log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))
    log.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s %(message)s") if config.DEBUG else JSONFormatter()
    )
    log.addHandler(console)

    if config.LOG_FILE and not config.is_test_env:
        file_handler = RotatingFileHandler(config.LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(JSONFormatter())
        log.addHandler(file_handler)

    if config.CLOUDWATCH_LOG_GROUP and not config.is_test_env:
        try:
            log.addHandler(CloudWatchHandler(config.CLOUDWATCH_LOG_GROUP, f"claims-api-{config.ENV}"))
        except (BotoCoreError, ClientError) as e:
            log.warning(f"⚠️ CloudWatch logging disabled: {e}")
    return log


logger = configure_logger()


def log_event(event: str, level: str = "info", **fields) -> None:
    """Emit a pipeline event as a JSON message, e.g. log_event("claim_decided", status="APPROVED")."""
    logger_method = getattr(logger, level, logger.info)
    logger_method(json.dumps({"event": event, **fields}, default=str), extra={"wallet": fields.get("user_address", "anonymous")})
