"""
apimock Mock Request Processor

Handles one inbound mock request end to end:

    received -> matched -> rendered -> delivered
    received -> unmatched -> delivered (404)

Every request is logged and counted before matching. Matching and rendering
only read shared state, so requests may be processed concurrently.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .generator import RenderedResponse, ResponseGenerator
from .models import MockConfig, Route
from .registry import MockRouteRegistry
from .request_log import RequestLogEntry, RequestLogStore, StatisticsCollector


NO_MATCH_ERROR = 'No matching mock route found'


@dataclass
class MockRequest:
    """Transport-independent view of an inbound mock request."""

    method: str
    path: str
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def route_path(self) -> str:
        """Path used for matching (query string and fragment removed)."""
        return self.path.split('?', 1)[0].split('#', 1)[0]


@dataclass
class MockResult:
    """Outcome of processing a mock request."""

    success: bool
    response: Optional[RenderedResponse] = None
    config: Optional[MockConfig] = None
    route: Optional[Route] = None
    params: Dict[str, str] = field(default_factory=dict)
    log_entry: Optional[RequestLogEntry] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {'success': False, 'error': self.error}
        return {
            'success': True,
            'response': self.response.to_dict(),
            'matchedRoute': self.route.to_dict(),
            'matchedConfig': self.config.to_dict(),
            'extractedParams': self.params
        }


class MockRequestProcessor:
    """
    Orchestrates logging, route resolution and response rendering.

    Example:
        processor = MockRequestProcessor(registry, generator)
        result = processor.process(MockRequest('GET', '/api/users/7'))
        if result.success:
            print(result.response.body)

        # Inside an async handler, with the route's delay applied:
        result = await processor.dispatch(request)
    """

    def __init__(
        self,
        registry: MockRouteRegistry,
        generator: ResponseGenerator,
        log_store: Optional[RequestLogStore] = None,
        statistics: Optional[StatisticsCollector] = None
    ):
        self.registry = registry
        self.generator = generator
        self.log_store = log_store or RequestLogStore()
        self.statistics = statistics or StatisticsCollector()
        self.logger = logging.getLogger('apimock.processor')

    def process(self, request: MockRequest) -> MockResult:
        """
        Log, resolve and render a request without applying its delay.

        Returns:
            MockResult; success is False when no route matches
        """
        entry = self.log_store.append(RequestLogEntry(
            method=request.method.upper(),
            path=request.path,
            body=request.body,
            headers=dict(request.headers)
        ))
        self.statistics.record_request()
        self.logger.debug(f"Incoming: {request.method} {request.path}")

        resolved = self.registry.resolve(request.method, request.route_path)
        if resolved is None:
            self.logger.warning(f"No match found for {request.method} {request.path}")
            return MockResult(success=False, log_entry=entry, error=NO_MATCH_ERROR)

        if self.registry.find_route(resolved.config.id, resolved.route.id) is None:
            self.logger.error(
                f"Route {resolved.route.id} of config {resolved.config.id} vanished "
                f"while serving {request.method} {request.path}"
            )
            return MockResult(success=False, log_entry=entry, error=NO_MATCH_ERROR)

        self.log_store.mark_matched(entry)
        self.statistics.record_match()

        response = self.generator.generate(
            resolved.route.response,
            params=resolved.params,
            body=request.body,
            headers=request.headers
        )
        self.logger.debug(
            f"Matched {request.method} {request.path} -> "
            f"{resolved.route.method} {resolved.route.path} ({response.status})"
        )

        return MockResult(
            success=True,
            response=response,
            config=resolved.config,
            route=resolved.route,
            params=resolved.params,
            log_entry=entry
        )

    async def dispatch(self, request: MockRequest) -> MockResult:
        """Process a request and wait out the matched route's delay."""
        result = self.process(request)
        if result.success and result.response.delay > 0:
            await asyncio.sleep(result.response.delay / 1000)
        return result

    def clear_logs(self) -> int:
        """Clear the request log and reset the request counters."""
        self.statistics.reset()
        return self.log_store.clear()

    def reset(self) -> None:
        """Drop every config and clear the request log and counters."""
        self.registry.clear()
        self.clear_logs()

    def get_statistics(self) -> Dict[str, Any]:
        data = self.statistics.snapshot(self.log_store, self.registry.counts())
        data['matcher'] = self.registry.matcher.stats()
        return data
