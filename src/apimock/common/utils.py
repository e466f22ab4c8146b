"""
apimock Common Utilities

Shared helpers for id generation, timestamps, JSON parsing and loading
mock configuration documents from disk.
"""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import yaml


STATUS_TEXTS = {
    200: 'OK',
    201: 'Created',
    204: 'No Content',
    400: 'Bad Request',
    401: 'Unauthorized',
    403: 'Forbidden',
    404: 'Not Found',
    500: 'Internal Server Error',
    502: 'Bad Gateway',
    503: 'Service Unavailable'
}


def generate_id() -> str:
    """Return a new random identifier for configs, routes and log entries."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(moment: datetime) -> str:
    """
    Format a datetime as an ISO-8601 UTC string with millisecond precision.

    Example:
        isoformat(utc_now())  # '2026-10-18T09:15:02.123Z'
    """
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def utc_now_iso() -> str:
    return isoformat(utc_now())


def get_status_text(status: int) -> str:
    """Return the reason phrase for common status codes, 'Unknown' otherwise."""
    return STATUS_TEXTS.get(status, 'Unknown')


def safe_json_parse(json_string: Any, default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON string (or bytes) to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails

    Example:
        body = safe_json_parse(raw_body, default={})
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError, UnicodeDecodeError):
        return default


class ConfigFileLoader:
    """
    Loader for mock configuration documents.

    Handles the formats produced by the export endpoint or written by hand:
    - Format 1: {"configs": [...]}  (export document, JSON or YAML)
    - Format 2: [...]               (bare list of configs)

    The loader only reads and normalizes the document; validating each
    config is the registry's job.

    Example:
        loader = ConfigFileLoader("mocks.yaml")
        document = loader.load()
        registry.import_configs(document)
    """

    def __init__(self, file_path: str):
        """
        Initialize config loader.

        Args:
            file_path: Path to a JSON or YAML config document
        """
        self.file_path = Path(file_path)

    def load(self) -> Dict[str, Any]:
        """
        Load the document and wrap bare lists as {"configs": [...]}.

        Returns:
            Document dictionary with a 'configs' key

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the document is neither a dict nor a list
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.file_path}")

        with open(self.file_path, 'r', encoding='utf-8') as f:
            if self.file_path.suffix.lower() in ('.yaml', '.yml'):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        if isinstance(data, list):
            return {'configs': data}
        if isinstance(data, dict):
            return data

        raise ValueError(
            f"Unexpected format in {self.file_path}. "
            f"Expected dict with a 'configs' key or a list of configs, "
            f"got {type(data).__name__}"
        )

    @staticmethod
    def load_from_file(file_path: str) -> Dict[str, Any]:
        """Convenience method to load a document in one call."""
        return ConfigFileLoader(file_path).load()
