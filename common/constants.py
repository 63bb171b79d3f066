"""Project-wide constants (part size limits, naming, timeouts)."""

MAX_PART_SIZE_BYTES: int = 8 * 1024 * 1024  # 8 MiB per-object limit of the sink
MAX_PARTS_PER_FILE: int = 50  # aggregate cap = MAX_PART_SIZE_BYTES * MAX_PARTS_PER_FILE

PART_SUFFIX_WIDTH: int = 3  # file.bin.part000

UPLOAD_CONCURRENCY: int = 4

SINK_TIMEOUT_SECONDS: float = 60.0
SINK_MAX_RETRIES: int = 2
SINK_RETRY_BACKOFF_BASE: float = 2.0

DEFAULT_MIME_TYPE: str = "application/octet-stream"
