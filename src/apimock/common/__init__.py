"""
apimock Common Utilities

Shared utilities and helpers used across apimock modules.
"""

from .utils import (
    ConfigFileLoader,
    generate_id,
    get_status_text,
    isoformat,
    safe_json_parse,
    utc_now,
    utc_now_iso,
)

__all__ = [
    'ConfigFileLoader',
    'generate_id',
    'get_status_text',
    'isoformat',
    'safe_json_parse',
    'utc_now',
    'utc_now_iso',
]
