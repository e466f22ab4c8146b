"""
apimock Mock Models

Value objects for mock configurations, routes and response specs.

All three are frozen: the registry never edits them in place, it builds a
replacement with dataclasses.replace() and swaps it in, so a reader holding
an old reference always sees a complete object.
"""

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from ..common import generate_id, utc_now_iso
from .errors import ValidationError


DEFAULT_MAX_DELAY_MS = 30000
DEFAULT_HEADERS = {'Content-Type': 'application/json'}


@dataclass(frozen=True)
class ResponseSpec:
    """Status, headers, body template and delay of a mocked response."""

    status: int = 200
    headers: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    body: Any = field(default_factory=dict)
    delay: int = 0

    @classmethod
    def from_dict(
        cls,
        data: Optional[Dict[str, Any]],
        max_delay_ms: int = DEFAULT_MAX_DELAY_MS
    ) -> 'ResponseSpec':
        """
        Create ResponseSpec from dictionary.

        Falsy values fall back to the defaults (status 200, JSON content
        type, empty object body, no delay).

        Raises:
            ValidationError: If status or delay is out of range
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ValidationError('Route response must be an object')

        status = _as_int(data.get('status') or 200, 'status')
        if not 200 <= status <= 599:
            raise ValidationError(f'Invalid response status: {status}')

        delay = _as_int(data.get('delay') or 0, 'delay')
        if delay < 0:
            raise ValidationError('Response delay must not be negative')
        if delay > max_delay_ms:
            raise ValidationError(f'Response delay must not exceed {max_delay_ms} ms')

        headers = data.get('headers') or dict(DEFAULT_HEADERS)
        if not isinstance(headers, dict):
            raise ValidationError('Response headers must be an object')

        body = data.get('body')
        return cls(
            status=status,
            headers=copy.deepcopy(headers),
            body=copy.deepcopy(body) if body is not None else {},
            delay=delay
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'headers': copy.deepcopy(self.headers),
            'body': copy.deepcopy(self.body),
            'delay': self.delay
        }


@dataclass(frozen=True)
class Route:
    """A method + path pattern bound to a response template."""

    id: str
    method: str
    path: str
    response: ResponseSpec
    created_at: str
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
        keep_id: bool = False
    ) -> 'Route':
        """
        Create Route from dictionary.

        Args:
            data: Route data ({"method", "path", "response"})
            max_delay_ms: Upper bound for response.delay
            keep_id: Reuse data['id'] if present (used by import)

        Raises:
            ValidationError: If the path is missing or the response is invalid
        """
        if not isinstance(data, dict):
            raise ValidationError('Route must be an object')

        path = data.get('path')
        if not path or not isinstance(path, str):
            raise ValidationError('Route path is required')

        now = utc_now_iso()
        return cls(
            id=(keep_id and data.get('id')) or generate_id(),
            method=_normalize_method(data.get('method')),
            path=path,
            response=ResponseSpec.from_dict(data.get('response'), max_delay_ms),
            created_at=(keep_id and data.get('createdAt')) or now,
            updated_at=data.get('updatedAt') if keep_id else None
        )

    def updated(self, updates: Dict[str, Any], max_delay_ms: int = DEFAULT_MAX_DELAY_MS) -> 'Route':
        """
        Return a copy with method, path and/or response fields replaced.

        Response updates are merged over the current response, so
        {"response": {"status": 500}} keeps the existing body.
        """
        changes: Dict[str, Any] = {'updated_at': utc_now_iso()}

        if 'method' in updates:
            changes['method'] = _normalize_method(updates['method'])
        if 'path' in updates:
            if not updates['path'] or not isinstance(updates['path'], str):
                raise ValidationError('Route path is required')
            changes['path'] = updates['path']
        if updates.get('response') is not None:
            if not isinstance(updates['response'], dict):
                raise ValidationError('Route response must be an object')
            merged = {**self.response.to_dict(), **updates['response']}
            changes['response'] = ResponseSpec.from_dict(merged, max_delay_ms)

        return replace(self, **changes)

    def matches_method(self, method: str) -> bool:
        return self.method.upper() == method.upper()

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'method': self.method,
            'path': self.path,
            'response': self.response.to_dict(),
            'createdAt': self.created_at
        }
        if self.updated_at:
            data['updatedAt'] = self.updated_at
        return data


@dataclass(frozen=True)
class MockConfig:
    """A named, switchable group of routes sharing a base path."""

    id: str
    name: str
    base_path: str
    enabled: bool
    routes: Tuple[Route, ...]
    created_at: str
    updated_at: str
    imported_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'MockConfig':
        """Create a new, empty MockConfig from create-request data."""
        data = data or {}
        now = utc_now_iso()
        return cls(
            id=generate_id(),
            name=data.get('name') or 'New Mock Server',
            base_path=_base_path_from(data, default='/api'),
            enabled=_as_bool(data.get('enabled'), default=True),
            routes=(),
            created_at=now,
            updated_at=now
        )

    def updated(self, updates: Dict[str, Any]) -> 'MockConfig':
        """Return a copy with name, base path and/or enabled replaced."""
        changes: Dict[str, Any] = {'updated_at': utc_now_iso()}

        if 'name' in updates:
            changes['name'] = updates['name'] or self.name
        if 'baseUrl' in updates or 'basePath' in updates:
            changes['base_path'] = _base_path_from(updates, default='')
        if 'enabled' in updates:
            changes['enabled'] = _as_bool(updates['enabled'], default=self.enabled)

        return replace(self, **changes)

    def with_routes(self, routes: Tuple[Route, ...]) -> 'MockConfig':
        return replace(self, routes=tuple(routes), updated_at=utc_now_iso())

    def find_route(self, route_id: str) -> Optional[Route]:
        for route in self.routes:
            if route.id == route_id:
                return route
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'baseUrl': self.base_path,
            'enabled': self.enabled,
            'routes': [route.to_dict() for route in self.routes],
            'createdAt': self.created_at,
            'updatedAt': self.updated_at
        }
        if self.imported_at:
            data['importedAt'] = self.imported_at
        return data


def _normalize_method(method: Any) -> str:
    if not method:
        return 'GET'
    if not isinstance(method, str):
        raise ValidationError('Route method must be a string')
    return method.upper()


def _base_path_from(data: Dict[str, Any], default: str) -> str:
    value = data.get('baseUrl', data.get('basePath', default))
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError('Base path must be a string')
    return value


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'Response {name} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Response {name} must be an integer')


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError('enabled must be true or false')
    return value
