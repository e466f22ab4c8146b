"""
apimock Mock Server

FastAPI-based HTTP server exposing the mock engine.

Features:
- Management API for mock configs and routes
- Catch-all mount serving mocked responses with templating and delays
- Request log and statistics introspection
- Export/import of configs and a dry-run test endpoint
"""

from __future__ import annotations  # Enable forward references for type hints

import json
import logging
import string
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional
from urllib.parse import quote

import uvicorn
import yaml
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .. import __version__
from ..common import ConfigFileLoader, safe_json_parse
from .errors import MalformedImport, MockServerError, ValidationError
from .fake_data import FAKE_DATA_BACKENDS, create_fake_data_provider
from .generator import RenderedResponse, ResponseGenerator, get_route_templates
from .models import DEFAULT_MAX_DELAY_MS
from .processor import MockRequest, MockRequestProcessor
from .registry import MockRouteRegistry
from .request_log import DEFAULT_LOG_CAPACITY, RequestLogStore, StatisticsCollector


MOCK_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'HEAD', 'OPTIONS']

# Headers managed by the HTTP layer, never copied from a route template
HEADERS_TO_SKIP = {'content-length', 'transfer-encoding', 'connection'}

# Printable ASCII is sent as-is; anything else in a header value is percent-encoded
HEADER_SAFE_CHARS = string.punctuation + " "


@dataclass
class ServerSettings:
    """Configuration for the mock server process."""

    # Server options
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "info"

    # URL layout
    api_prefix: str = "/api"  # Management and introspection API
    mount_path: str = "/mock"  # Catch-all for mocked requests

    # Limits
    log_capacity: int = DEFAULT_LOG_CAPACITY  # Request log entries kept (FIFO)
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS  # Largest accepted route delay

    # Fake data
    fake_data_backend: str = "faker"  # faker, builtin
    faker_locale: str = "en_US"
    faker_seed: Optional[int] = None

    # Configs imported at startup (JSON or YAML export document)
    seed_file: Optional[str] = None

    def __post_init__(self):
        if self.fake_data_backend not in FAKE_DATA_BACKENDS:
            raise ValueError(f"Unknown fake data backend: {self.fake_data_backend!r}")
        if self.log_capacity <= 0:
            raise ValueError("log_capacity must be positive")
        if self.max_delay_ms < 0:
            raise ValueError("max_delay_ms must not be negative")
        self.api_prefix = '/' + self.api_prefix.strip('/')
        self.mount_path = '/' + self.mount_path.strip('/')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ServerSettings':
        """Create settings from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'ServerSettings':
        """Load settings from YAML file."""
        with open(yaml_path, 'r') as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})


class MockServer:
    """
    FastAPI-based mock server for user-defined mock configurations.

    All state (registry, request log, statistics) lives on the instance,
    so several servers can run side by side, e.g. in tests.

    Example:
        server = MockServer()
        config = server.registry.create_config({'name': 'Users', 'baseUrl': '/api'})
        server.registry.add_route(config.id, {
            'method': 'GET',
            'path': '/users/:id',
            'response': {'body': {'id': '{{params.id}}'}}
        })
        server.start(port=8080)   # GET /mock/api/users/7 -> {"id": "7"}
    """

    def __init__(
        self,
        settings: Optional[ServerSettings] = None,
        registry: Optional[MockRouteRegistry] = None,
        generator: Optional[ResponseGenerator] = None
    ):
        """
        Initialize mock server.

        Args:
            settings: Optional ServerSettings for server behavior
            registry: Optional MockRouteRegistry instance (will create if None)
            generator: Optional ResponseGenerator instance (will create if None)
        """
        self.settings = settings or ServerSettings()

        self.logger = logging.getLogger("apimock.server")
        self.logger.setLevel(getattr(logging, self.settings.log_level.upper()))

        self.registry = registry or MockRouteRegistry(max_delay_ms=self.settings.max_delay_ms)
        self.generator = generator or ResponseGenerator(
            fake_data=create_fake_data_provider(
                self.settings.fake_data_backend,
                locale=self.settings.faker_locale,
                seed=self.settings.faker_seed
            )
        )
        self.processor = MockRequestProcessor(
            registry=self.registry,
            generator=self.generator,
            log_store=RequestLogStore(self.settings.log_capacity),
            statistics=StatisticsCollector()
        )

        if self.settings.seed_file:
            self._load_seed_file(self.settings.seed_file)

        self.app = self._create_app()

    def _load_seed_file(self, path: str):
        """Import configs from the seed file configured in settings."""
        document = ConfigFileLoader(path).load()
        imported = self.registry.import_configs(document)
        self.logger.info(f"Loaded {imported} mock configs from {path}")

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with routes."""
        app = FastAPI(
            title="apimock Mock Server",
            description="Mock HTTP server serving user-defined routes",
            version=__version__
        )
        api = self.settings.api_prefix

        @app.exception_handler(MalformedImport)
        async def malformed_import_handler(request: Request, exc: MalformedImport):
            return JSONResponse(content={'success': False, 'error': str(exc)}, status_code=exc.status_code)

        @app.exception_handler(MockServerError)
        async def mock_error_handler(request: Request, exc: MockServerError):
            return JSONResponse(content={'error': str(exc)}, status_code=exc.status_code)

        # Mock configs

        @app.get(f"{api}/mock-configs")
        async def list_configs():
            """List all mock configurations."""
            return [c.to_dict() for c in self.registry.list_configs()]

        @app.post(f"{api}/mock-configs")
        async def create_config(request: Request):
            """Create a mock configuration."""
            config = self.registry.create_config(await _read_json(request))
            return JSONResponse(content=config.to_dict(), status_code=201)

        @app.get(f"{api}/mock-configs/{{config_id}}")
        async def get_config(config_id: str):
            """Get one mock configuration."""
            return self.registry.get_config(config_id).to_dict()

        @app.put(f"{api}/mock-configs/{{config_id}}")
        async def update_config(config_id: str, request: Request):
            """Update name, base path or enabled flag of a configuration."""
            return self.registry.update_config(config_id, await _read_json(request)).to_dict()

        @app.delete(f"{api}/mock-configs/{{config_id}}")
        async def delete_config(config_id: str):
            """Delete a mock configuration and all its routes."""
            self.registry.delete_config(config_id)
            return Response(status_code=204)

        # Routes

        @app.post(f"{api}/mock-configs/{{config_id}}/routes")
        async def add_route(config_id: str, request: Request):
            """Append a route to a configuration."""
            route = self.registry.add_route(config_id, await _read_json(request))
            return JSONResponse(content=route.to_dict(), status_code=201)

        @app.put(f"{api}/mock-configs/{{config_id}}/routes/{{route_id}}")
        async def update_route(config_id: str, route_id: str, request: Request):
            """Update a route, keeping its position."""
            return self.registry.update_route(config_id, route_id, await _read_json(request)).to_dict()

        @app.delete(f"{api}/mock-configs/{{config_id}}/routes/{{route_id}}")
        async def delete_route(config_id: str, route_id: str):
            """Delete a route."""
            self.registry.delete_route(config_id, route_id)
            return Response(status_code=204)

        # Introspection

        @app.get(f"{api}/mock-logs")
        async def get_logs(limit: int = 100):
            """Get recent mock requests, most recent first."""
            return [entry.to_dict() for entry in self.processor.log_store.list(limit)]

        @app.delete(f"{api}/mock-logs")
        async def clear_logs():
            """Clear the request log and reset request counters."""
            count = self.processor.clear_logs()
            self.logger.info(f"Cleared {count} request log entries")
            return Response(status_code=204)

        @app.get(f"{api}/mock-stats")
        async def get_stats():
            """Get request and registry statistics."""
            return self.processor.get_statistics()

        @app.get(f"{api}/mock-templates")
        async def get_templates():
            """Get starter route templates."""
            return get_route_templates()

        @app.get(f"{api}/mock-export")
        async def export_configs():
            """Export all configurations."""
            return self.registry.export_configs()

        @app.post(f"{api}/mock-import")
        async def import_configs(request: Request):
            """Import configurations from an export document."""
            try:
                data = await _read_json(request)
            except ValidationError as e:
                raise MalformedImport(str(e))
            imported = self.registry.import_configs(data)
            return {'success': True, 'imported': imported}

        @app.post(f"{api}/mock-test")
        async def test_mock(request: Request):
            """
            Run a request through the mock engine without a delay.

            Body: {"method": "GET", "url": "/api/users/7", "body": ..., "headers": {...}}
            """
            data = await _read_json(request)
            url = data.get('url')
            method = data.get('method') or 'GET'
            headers = data.get('headers') or {}
            if not url:
                raise ValidationError('url is required')
            if not isinstance(url, str):
                raise ValidationError('url must be a string')
            if not isinstance(method, str):
                raise ValidationError('method must be a string')
            if not isinstance(headers, dict):
                raise ValidationError('headers must be an object')

            result = self.processor.process(MockRequest(
                method=method,
                path=url,
                body=data.get('body'),
                headers=headers
            ))
            return result.to_dict()

        @app.delete(f"{api}/mock-data")
        async def reset_all():
            """Delete every configuration, clear the request log and reset counters."""
            self.processor.reset()
            self.logger.info("Cleared all mock configs, request logs and statistics")
            return Response(status_code=204)

        # Catch-all for mocked requests

        async def handle_mock_root(request: Request):
            return await self._handle_mock_request(request, '')

        async def handle_mock_request(request: Request, path: str):
            return await self._handle_mock_request(request, path)

        mount = self.settings.mount_path
        app.add_api_route(mount, handle_mock_root, methods=MOCK_METHODS, include_in_schema=False)
        app.add_api_route(f"{mount}/{{path:path}}", handle_mock_request, methods=MOCK_METHODS, include_in_schema=False)

        return app

    async def _handle_mock_request(self, request: Request, path: str) -> Response:
        """Handle a request under the mock mount point."""
        mock_path = '/' + path
        if request.url.query:
            mock_path = f"{mock_path}?{request.url.query}"

        raw_body = await request.body()
        body = safe_json_parse(raw_body, default=None)
        if body is None and raw_body:
            body = raw_body.decode('utf-8', errors='replace')

        result = await self.processor.dispatch(MockRequest(
            method=request.method,
            path=mock_path,
            body=body,
            headers=dict(request.headers)
        ))

        if not result.success:
            return JSONResponse(
                content={
                    'error': 'Mock endpoint not found',
                    'message': result.error,
                    'path': mock_path,
                    'method': request.method
                },
                status_code=404
            )

        return self._create_response(result.response)

    def _create_response(self, rendered: RenderedResponse) -> Response:
        """
        Create FastAPI Response from a rendered route response.

        JSON bodies are serialized; string bodies with a non-JSON content
        type are sent as-is; 204/304 responses carry no body.
        """
        headers = {}
        for name, value in rendered.headers.items():
            name = _strip_line_breaks(name)
            if name.lower() in HEADERS_TO_SKIP:
                continue
            if not name or not _is_latin1(name):
                self.logger.warning(f"Dropping response header with invalid name: {name!r}")
                continue

            value = _strip_line_breaks(value)
            if not _is_latin1(value):
                value = quote(value, safe=HEADER_SAFE_CHARS)
                self.logger.warning(f"Percent-encoded non latin-1 value of response header {name}")
            headers[name] = value

        content_type = next((v for k, v in headers.items() if k.lower() == 'content-type'), 'application/json')

        if rendered.status in (204, 304):
            return Response(status_code=rendered.status, headers=headers)

        if isinstance(rendered.body, (str, bytes)) and 'json' not in content_type.lower():
            return Response(
                content=rendered.body,
                status_code=rendered.status,
                headers=headers,
                media_type=content_type
            )

        return JSONResponse(content=rendered.body, status_code=rendered.status, headers=headers)

    def start(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        access_log: bool = True
    ):
        """
        Start the mock server.

        Args:
            host: Host to bind to (overrides settings)
            port: Port to bind to (overrides settings)
            access_log: Enable access logging
        """
        actual_host = host or self.settings.host
        actual_port = port or self.settings.port
        counts = self.registry.counts()

        self.logger.info(f"apimock server starting on {actual_host}:{actual_port}")
        self.logger.info(f"Configs loaded: {counts['totalConfigs']} ({counts['totalRoutes']} routes)")
        self.logger.info(f"Management API: http://{actual_host}:{actual_port}{self.settings.api_prefix}/mock-configs")
        self.logger.info(f"Mock endpoint: http://{actual_host}:{actual_port}{self.settings.mount_path}/*")

        uvicorn.run(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=self.settings.log_level,
            access_log=access_log
        )

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def _strip_line_breaks(text: str) -> str:
    return text.replace('\r', '').replace('\n', '')


def _is_latin1(text: str) -> bool:
    try:
        text.encode('latin-1')
    except UnicodeEncodeError:
        return False
    return True


async def _read_json(request: Request) -> Dict[str, Any]:
    """Read a JSON object body; an empty body reads as {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError('Request body must be valid JSON')
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def create_mock_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    settings_file: Optional[str] = None,
    seed_file: Optional[str] = None,
    fake_data_backend: Optional[str] = None,
    faker_locale: Optional[str] = None,
    faker_seed: Optional[int] = None,
    max_delay_ms: Optional[int] = None,
    log_level: Optional[str] = None
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Arguments that are not None override the values read from settings_file
    (or the ServerSettings defaults).

    Args:
        host: Host to bind to
        port: Port to bind to
        settings_file: Optional YAML settings file
        seed_file: Optional JSON/YAML document of configs to import
        fake_data_backend: 'faker' or 'builtin'
        faker_locale: Faker locale
        faker_seed: Seed for reproducible fake data
        max_delay_ms: Largest accepted route delay
        log_level: Log level (debug, info, warning, error)

    Returns:
        Configured MockServer instance

    Example:
        server = create_mock_server(port=8080, seed_file='mocks.yaml', faker_seed=42)
        server.start()
    """
    settings = ServerSettings.from_yaml(settings_file) if settings_file else ServerSettings()

    overrides = {
        'host': host,
        'port': port,
        'seed_file': seed_file,
        'fake_data_backend': fake_data_backend,
        'faker_locale': faker_locale,
        'faker_seed': faker_seed,
        'max_delay_ms': max_delay_ms,
        'log_level': log_level
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    return MockServer(settings)
