"""
apimock Mock Server Module

Mock HTTP server engine for user-defined routes.

This module provides:
- Route path matching (literal, :param and wildcard segments)
- Mock config/route registry with ordered resolution
- {{expression}} templating with request, fake, date and random data
- FastAPI-based server with management and introspection API
"""

from .errors import ConfigNotFound, MalformedImport, MockServerError, RouteNotFound, ValidationError
from .fake_data import (
    BuiltinDataProvider,
    FakeDataProvider,
    FakerDataProvider,
    create_fake_data_provider,
    faker_namespace
)
from .generator import RenderedResponse, ResponseGenerator, get_route_templates
from .matcher import RoutePathMatcher, match_path
from .models import MockConfig, ResponseSpec, Route
from .processor import MockRequest, MockRequestProcessor, MockResult
from .registry import MockRouteRegistry, ResolvedRoute
from .request_log import RequestLogEntry, RequestLogStore, StatisticsCollector
from .server import MockServer, ServerSettings, create_mock_server
from .template import UNDEFINED, ExpressionEvaluator, TemplateRenderer

__all__ = [
    # Server
    'MockServer',
    'ServerSettings',
    'create_mock_server',

    # Processing
    'MockRequest',
    'MockRequestProcessor',
    'MockResult',

    # Registry and models
    'MockRouteRegistry',
    'ResolvedRoute',
    'MockConfig',
    'Route',
    'ResponseSpec',

    # Matching
    'RoutePathMatcher',
    'match_path',

    # Templating
    'ExpressionEvaluator',
    'TemplateRenderer',
    'UNDEFINED',
    'ResponseGenerator',
    'RenderedResponse',
    'get_route_templates',

    # Fake data
    'FakeDataProvider',
    'FakerDataProvider',
    'BuiltinDataProvider',
    'create_fake_data_provider',
    'faker_namespace',

    # Request log
    'RequestLogEntry',
    'RequestLogStore',
    'StatisticsCollector',

    # Errors
    'MockServerError',
    'ConfigNotFound',
    'RouteNotFound',
    'ValidationError',
    'MalformedImport',
]
