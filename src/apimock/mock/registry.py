"""
apimock Mock Route Registry

Owns the mock configurations and resolves incoming requests to routes.

Resolution order is the only tie-break rule: configs are walked in creation
order, routes within a config in insertion order, and the first route whose
method and path match wins.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from ..common import generate_id, utc_now_iso
from .errors import ConfigNotFound, MalformedImport, MockServerError, RouteNotFound
from .matcher import RoutePathMatcher
from .models import DEFAULT_MAX_DELAY_MS, MockConfig, Route


EXPORT_VERSION = '1.0.0'


@dataclass(frozen=True)
class ResolvedRoute:
    """Result of a successful resolve(): the config, route and bound params."""

    config: MockConfig
    route: Route
    params: Dict[str, str]


class MockRouteRegistry:
    """
    Thread-safe collection of mock configurations.

    Configs and routes are immutable; every mutation builds a replacement
    config under the lock and swaps it into the map. resolve() copies the
    current configs under the lock and matches without holding it, so it
    always works on complete route lists.

    Example:
        registry = MockRouteRegistry()
        config = registry.create_config({'name': 'Users', 'baseUrl': '/api'})
        registry.add_route(config.id, {'method': 'GET', 'path': '/users/:id'})

        resolved = registry.resolve('GET', '/api/users/7')
        if resolved:
            print(resolved.route.id, resolved.params)
    """

    def __init__(
        self,
        matcher: Optional[RoutePathMatcher] = None,
        max_delay_ms: int = DEFAULT_MAX_DELAY_MS
    ):
        """
        Initialize registry.

        Args:
            matcher: Path matcher (a new RoutePathMatcher if None)
            max_delay_ms: Upper bound accepted for route response delays
        """
        self.matcher = matcher or RoutePathMatcher()
        self.max_delay_ms = max_delay_ms
        self._configs: Dict[str, MockConfig] = {}
        self._lock = threading.RLock()
        self.logger = logging.getLogger('apimock.registry')

    # Config CRUD

    def create_config(self, data: Optional[Dict[str, Any]] = None) -> MockConfig:
        config = MockConfig.from_dict(data)
        with self._lock:
            self._configs[config.id] = config
        self.logger.info(f"Created mock config {config.id} ({config.name}, base {config.base_path!r})")
        return config

    def list_configs(self) -> List[MockConfig]:
        with self._lock:
            return list(self._configs.values())

    def get_config(self, config_id: str) -> MockConfig:
        """
        Get a config by id.

        Raises:
            ConfigNotFound: If no config has this id
        """
        with self._lock:
            config = self._configs.get(config_id)
        if config is None:
            raise ConfigNotFound(config_id)
        return config

    def update_config(self, config_id: str, updates: Dict[str, Any]) -> MockConfig:
        """Update name, baseUrl/basePath and/or enabled of a config."""
        with self._lock:
            config = self.get_config(config_id).updated(updates or {})
            self._configs[config_id] = config
        self.logger.info(f"Updated mock config {config_id}")
        return config

    def delete_config(self, config_id: str) -> None:
        with self._lock:
            if self._configs.pop(config_id, None) is None:
                raise ConfigNotFound(config_id)
        self.logger.info(f"Deleted mock config {config_id}")

    # Route CRUD

    def add_route(self, config_id: str, data: Dict[str, Any]) -> Route:
        """
        Append a route to a config.

        Raises:
            ConfigNotFound: If the config doesn't exist
            ValidationError: If the route data is invalid
        """
        route = Route.from_dict(data, self.max_delay_ms)
        with self._lock:
            config = self.get_config(config_id)
            self._configs[config_id] = config.with_routes(config.routes + (route,))
        self.logger.info(f"Added route {route.method} {route.path} to config {config_id}")
        return route

    def get_route(self, config_id: str, route_id: str) -> Route:
        route = self.get_config(config_id).find_route(route_id)
        if route is None:
            raise RouteNotFound(config_id, route_id)
        return route

    def find_route(self, config_id: str, route_id: str) -> Optional[Route]:
        """Non-raising variant of get_route()."""
        with self._lock:
            config = self._configs.get(config_id)
        return config.find_route(route_id) if config else None

    def update_route(self, config_id: str, route_id: str, updates: Dict[str, Any]) -> Route:
        """Replace a route in place, keeping its position in the config."""
        with self._lock:
            config = self.get_config(config_id)
            routes = list(config.routes)
            for index, route in enumerate(routes):
                if route.id == route_id:
                    routes[index] = route.updated(updates or {}, self.max_delay_ms)
                    self._configs[config_id] = config.with_routes(tuple(routes))
                    updated = routes[index]
                    break
            else:
                raise RouteNotFound(config_id, route_id)
        self.logger.info(f"Updated route {route_id} in config {config_id}")
        return updated

    def delete_route(self, config_id: str, route_id: str) -> None:
        with self._lock:
            config = self.get_config(config_id)
            routes = tuple(r for r in config.routes if r.id != route_id)
            if len(routes) == len(config.routes):
                raise RouteNotFound(config_id, route_id)
            self._configs[config_id] = config.with_routes(routes)
        self.logger.info(f"Deleted route {route_id} from config {config_id}")

    # Resolution

    def resolve(self, method: str, path: str) -> Optional[ResolvedRoute]:
        """
        Find the first enabled config/route matching method and path.

        Args:
            method: HTTP method (compared case-insensitively)
            path: Request path without query string

        Returns:
            ResolvedRoute, or None if nothing matches
        """
        with self._lock:
            snapshot = tuple(self._configs.values())

        for config in snapshot:
            if not config.enabled:
                continue

            for route in config.routes:
                if not route.matches_method(method):
                    continue

                params = self.matcher.match(route.path, path, config.base_path)
                if params is not None:
                    return ResolvedRoute(config=config, route=route, params=params)

        return None

    # Bulk operations

    def counts(self) -> Dict[str, int]:
        configs = self.list_configs()
        return {
            'totalConfigs': len(configs),
            'enabledConfigs': sum(1 for c in configs if c.enabled),
            'totalRoutes': sum(len(c.routes) for c in configs)
        }

    def export_configs(self) -> Dict[str, Any]:
        return {
            'version': EXPORT_VERSION,
            'exportedAt': utc_now_iso(),
            'configs': [config.to_dict() for config in self.list_configs()]
        }

    def parse_import(self, data: Any) -> List[MockConfig]:
        """
        Build configs from an export document without touching the registry.

        Every imported config gets a fresh id; route ids are kept.

        Raises:
            MalformedImport: If the document or any config in it is invalid
        """
        if not isinstance(data, dict) or not isinstance(data.get('configs'), list):
            raise MalformedImport('Invalid import data format')

        configs = []
        now = utc_now_iso()
        for index, item in enumerate(data['configs']):
            if not isinstance(item, dict):
                raise MalformedImport(f'Config #{index} must be an object')
            raw_routes = item.get('routes') or []
            if not isinstance(raw_routes, list):
                raise MalformedImport(f'Config #{index} routes must be a list')

            try:
                base = MockConfig.from_dict(item)
                routes = tuple(
                    Route.from_dict(r, self.max_delay_ms, keep_id=True) for r in raw_routes
                )
            except MockServerError as e:
                raise MalformedImport(f'Config #{index}: {e}')

            configs.append(replace(
                base,
                id=generate_id(),
                routes=routes,
                created_at=item.get('createdAt') or now,
                imported_at=now
            ))

        return configs

    def import_configs(self, data: Any) -> int:
        """
        Import configs from an export document, all or nothing.

        Returns:
            Number of configs imported
        """
        configs = self.parse_import(data)
        with self._lock:
            for config in configs:
                self._configs[config.id] = config
        self.logger.info(f"Imported {len(configs)} mock configs")
        return len(configs)

    def clear(self) -> None:
        with self._lock:
            count = len(self._configs)
            self._configs.clear()
        self.logger.info(f"Deleted all {count} mock configs")
