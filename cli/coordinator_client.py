"""HTTP client for communicating with the coordinator service."""

import mimetypes
import time
import uuid
from pathlib import Path
from typing import Optional

import httpx

from common.logging_config import get_logger
from cli.config import Config
from cli.utils import filename_from_disposition, format_file_size

logger = get_logger(__name__)


class CoordinatorClient:
    """HTTP client for coordinator API with retry logic and error handling."""

    def __init__(self, config: Config):
        """
        Initialize coordinator client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        self.request_id = None
        self.last_file_id: Optional[str] = None
        logger.info(f"Initialized CoordinatorClient [base_url={config.get_base_url()}]")

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        raise ConnectionError("Cannot connect to coordinator server. Is it running?")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        error_messages = {
            'NOT_FOUND': 'File not found on server.',
            'VALIDATION_ERROR': f'Invalid request: {detail}',
            'CAPACITY_EXCEEDED': f'File too large: {detail}',
            'UPSTREAM_FAILURE': f'Storage backend failed, nothing was saved: {detail}',
            'PARTIAL_FAILURE': f'Upload aborted after a part failed, nothing was saved: {detail}',
            'PARTIAL_CONTENT_MISSING': f'Some parts of the file could not be retrieved: {detail}',
            'CATALOG_ERROR': 'Metadata database error on the server.',
        }

        if code in error_messages:
            return error_messages[code]

        status_messages = {
            400: 'Bad request',
            404: 'Not found',
            413: 'File too large',
            500: 'Server error',
            502: 'Storage backend error',
            503: 'Service unavailable',
        }

        message = status_messages.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def upload_files(self, paths: list[str]) -> str:
        """
        Upload files one by one.

        Uploads are not retried: a retry after a server error could store the
        file twice under different ids.

        Args:
            paths: Local file paths

        Returns:
            One result line per file
        """
        results = []

        for file_path in paths:
            path = Path(file_path).expanduser()
            if not path.is_file():
                results.append(f"Error: File not found: {file_path}")
                continue

            file_size = path.stat().st_size
            mime_type = mimetypes.guess_type(path.name)[0] or 'application/octet-stream'

            try:
                with open(path, 'rb') as f:
                    response = self._request_with_retry(
                        'POST',
                        '/files',
                        max_retries=0,
                        files={'file': (path.name, f, mime_type)},
                        timeout=self.config.get_upload_timeout(file_size),
                    )
            except ConnectionError as e:
                results.append(f"Error uploading {file_path}: {e}")
                continue

            if response.status_code == 201:
                result = response.json()
                self.last_file_id = result['file_id']
                results.append(
                    f"Uploaded: {result['filename']} "
                    f"(Size: {format_file_size(result['size'])}, Parts: {result['part_count']})\n"
                    f"File ID: {result['file_id']}"
                )
            else:
                results.append(f"Error uploading {file_path}: {self._format_error(response)}")

        return '\n'.join(results) if results else "No files uploaded."

    def list_files(self) -> str:
        """
        List stored files.

        Returns:
            Formatted list of files
        """
        try:
            response = self._request_with_retry('GET', '/files')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        files = response.json()['files']
        if not files:
            return "No files stored."

        lines = [f"{len(files)} file(s):"]
        for file in files:
            lines.append(
                f"  {file['file_id']}  {file['filename']}  "
                f"{format_file_size(file['size'])}  {file['created_at']}"
            )
        return '\n'.join(lines)

    def resolve(self, file_id: str) -> str:
        """
        Show a file's name and the ordered URLs of its parts.
        """
        try:
            response = self._request_with_retry('GET', f'/files/{file_id}')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        data = response.json()
        lines = [f"{data['filename']} ({format_file_size(data['size'])}, {len(data['urls'])} parts)"]
        lines.extend(f"  [{index}] {url}" for index, url in enumerate(data['urls']))
        return '\n'.join(lines)

    def merge(self, file_id: str, output_path: Optional[str] = None) -> str:
        """
        Download the reassembled file.

        Args:
            file_id: File to merge
            output_path: Destination path; defaults to <download_dir>/<original filename>

        Returns:
            Success or error message
        """
        try:
            response = self._request_with_retry('GET', f'/files/{file_id}/content')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        filename = filename_from_disposition(response.headers.get('content-disposition')) or 'merged-file'

        try:
            output_file = self.config.resolve_output_path(filename, output_path)
        except FileExistsError as e:
            return f"Error: {e}. Pass another output path or set overwrite_merged_files."

        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_bytes(response.content)

        return f"Merged: {filename} ({format_file_size(len(response.content))}) -> {output_file}"

    def delete(self, file_id: str) -> str:
        """
        Delete a file and all of its parts.
        """
        try:
            response = self._request_with_retry('DELETE', f'/files/{file_id}')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        data = response.json()
        if data['file_id'] == self.last_file_id:
            self.last_file_id = None
        return f"Deleted: {data['file_id']} ({data['deleted_parts']} parts)"

    def check_health(self) -> bool:
        """Whether the coordinator answers its health endpoint. Never retried."""
        try:
            response = self._request_with_retry('GET', '/health', max_retries=0)
        except ConnectionError:
            return False
        return response.status_code == 200
