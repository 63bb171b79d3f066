"""Configuration settings for the coordinator server."""

import os

from common.constants import (
    MAX_PART_SIZE_BYTES,
    MAX_PARTS_PER_FILE,
    UPLOAD_CONCURRENCY,
    SINK_TIMEOUT_SECONDS,
    SINK_MAX_RETRIES,
)


DATABASE_PATH = os.environ.get("PV_DATABASE_PATH", "./data/catalog.db")

COORDINATOR_HOST = os.environ.get("PV_HOST", "0.0.0.0")

COORDINATOR_PORT = int(os.environ.get("PV_PORT", "8000"))

SINK_WEBHOOK_URL = os.environ.get("PV_SINK_WEBHOOK_URL", "")

MAX_PART_SIZE = int(os.environ.get("PV_MAX_PART_SIZE_BYTES", str(MAX_PART_SIZE_BYTES)))

MAX_PARTS = int(os.environ.get("PV_MAX_PARTS_PER_FILE", str(MAX_PARTS_PER_FILE)))

CONCURRENCY = int(os.environ.get("PV_UPLOAD_CONCURRENCY", str(UPLOAD_CONCURRENCY)))

SINK_TIMEOUT = float(os.environ.get("PV_SINK_TIMEOUT_SECONDS", str(SINK_TIMEOUT_SECONDS)))

SINK_RETRIES = int(os.environ.get("PV_SINK_MAX_RETRIES", str(SINK_MAX_RETRIES)))

ORPHAN_LOG_PATH = os.environ.get("PV_ORPHAN_LOG_PATH", "./data/orphaned_parts.json")

CLEANUP_INTERVAL_SECONDS = int(os.environ.get("PV_CLEANUP_INTERVAL_SECONDS", str(6 * 3600)))
