"""
apimock Mock Server Errors

Exceptions raised by management operations. Failed route matches and
unresolvable template expressions are normal outcomes and are not
represented here.
"""


class MockServerError(Exception):
    """Base class for mock server errors."""

    status_code = 500


class ConfigNotFound(MockServerError):
    """Raised when a mock configuration id is unknown."""

    status_code = 404

    def __init__(self, config_id: str):
        self.config_id = config_id
        super().__init__('Mock configuration not found')


class RouteNotFound(MockServerError):
    """Raised when a route id is unknown within its configuration."""

    status_code = 404

    def __init__(self, config_id: str, route_id: str):
        self.config_id = config_id
        self.route_id = route_id
        super().__init__('Route not found')


class ValidationError(MockServerError):
    """Raised when config or route data has an invalid value."""

    status_code = 400


class MalformedImport(MockServerError):
    """Raised when an import document is missing its required shape."""

    status_code = 400
