"""Settings for the partvault CLI, kept in ~/.partvault/config.json."""

import json
import os
from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.constants import DEFAULT_DOWNLOAD_DIR

logger = get_logger(__name__)

# Environment variables win over the file for this process only; they are
# never written back.
ENV_OVERRIDES = {
    "coordinator_url": "PV_COORDINATOR_URL",
    "download_dir": "PV_DOWNLOAD_DIR",
}


class Config:
    """CLI settings: where the coordinator is, how hard to retry, where merges land."""

    DEFAULTS = {
        "coordinator_url": "http://localhost:8000",
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "upload_seconds_per_mib": 0.1,
        "download_dir": DEFAULT_DOWNLOAD_DIR,
        "overwrite_merged_files": False,
    }

    def __init__(self, config_path: Path):
        """
        Args:
            config_path: JSON settings file; created with defaults if missing
        """
        self.config_path = Path(config_path)
        self.data = self._load()

    def _load(self) -> dict:
        stored = self._read_file()
        if stored is None:
            stored = {}
            self.data = dict(self.DEFAULTS)
            self.save()

        data = dict(self.DEFAULTS)
        for key, default in self.DEFAULTS.items():
            if key not in stored:
                continue
            value = stored[key]
            if isinstance(default, bool) and not isinstance(value, bool):
                logger.warning(f"Ignoring {key}={value!r} in {self.config_path}: expected true/false")
            elif isinstance(default, (int, float)) and not isinstance(default, bool) and (
                isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0
            ):
                logger.warning(f"Ignoring {key}={value!r} in {self.config_path}: expected a non-negative number")
            elif isinstance(default, str) and not (isinstance(value, str) and value):
                logger.warning(f"Ignoring {key}={value!r} in {self.config_path}: expected a non-empty string")
            else:
                data[key] = value

        for key, env_var in ENV_OVERRIDES.items():
            if os.environ.get(env_var):
                data[key] = os.environ[env_var]

        return data

    def _read_file(self) -> Optional[dict]:
        """
        Read the settings file. Returns None when there is none to read.

        An unreadable file is moved aside to config.json.bak so that the
        defaults written in its place do not destroy the user's edits.
        """
        if not self.config_path.exists():
            return None

        try:
            with open(self.config_path, 'r') as f:
                stored = json.load(f)
            if not isinstance(stored, dict):
                raise ValueError("top-level value is not an object")
            return stored
        except (OSError, ValueError) as e:
            backup_path = self.config_path.with_suffix('.json.bak')
            logger.warning(f"Unreadable settings in {self.config_path} ({e}); moved to {backup_path}")
            try:
                self.config_path.replace(backup_path)
            except OSError:
                logger.warning(f"Could not move {self.config_path} aside")
            return None

    def save(self) -> None:
        """Write settings to disk, leaving out values that came from the environment."""
        persisted = {
            key: value for key, value in self.data.items()
            if not os.environ.get(ENV_OVERRIDES.get(key, ''))
        }
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                json.dump(persisted, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save settings to {self.config_path}: {e}")

    def get_base_url(self) -> str:
        return str(self.data['coordinator_url']).rstrip('/')

    def get_timeout(self) -> float:
        return self.data['timeout']

    def get_retry_config(self) -> dict:
        """
        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data['max_retries'],
            'retry_backoff_multiplier': self.data['retry_backoff_multiplier'],
        }

    def get_upload_timeout(self, file_size: int) -> float:
        """
        Timeout for uploading file_size bytes: the base timeout plus a
        per-MiB allowance, since the coordinator answers only after every
        part is stored.
        """
        size_mib = file_size / (1024 * 1024)
        return self.get_timeout() + size_mib * self.data['upload_seconds_per_mib']

    def get_download_dir(self) -> Path:
        return Path(self.data['download_dir']).expanduser()

    def resolve_output_path(self, filename: str, output_path: Optional[str] = None) -> Path:
        """
        Where a merged file should be written.

        The server-supplied filename is reduced to its last path component.
        With no output_path the file goes to the download directory; an
        output_path naming a directory gets the filename appended.

        Raises:
            FileExistsError: If the target exists and overwriting is off
        """
        safe_name = Path(filename).name or 'merged-file'

        if output_path:
            target = Path(output_path).expanduser()
            if target.is_dir():
                target = target / safe_name
        else:
            target = self.get_download_dir() / safe_name

        if target.exists() and not self.data['overwrite_merged_files']:
            raise FileExistsError(f"{target} already exists")
        return target
