"""
apimock Response Generator

Builds the per-request template context and renders a route's response
spec into a concrete response.

Features:
- Request data namespaces (params, body, headers)
- Fake data namespace backed by a FakeDataProvider
- Date snapshot taken once per render
- Random helpers (uuid fixed per render, int/float/bool/choice on each call)
- Catalogue of starter route templates
"""

import copy
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..common import generate_id, get_status_text, isoformat, utc_now
from .fake_data import FakeDataProvider, create_fake_data_provider, faker_namespace
from .models import ResponseSpec
from .template import TemplateRenderer, stringify


@dataclass
class RenderedResponse:
    """A response spec after template rendering."""

    status: int
    headers: Dict[str, str]
    body: Any
    delay: int = 0

    @property
    def status_text(self) -> str:
        return get_status_text(self.status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'statusText': self.status_text,
            'headers': self.headers,
            'body': self.body,
            'delay': self.delay
        }


def random_namespace(rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """
    Build the {{random.*}} namespace.

    uuid is generated once; the other entries are called on every use, so two
    {{random.int}} placeholders in one body give independent values.
    """
    rng = rng or random.Random()

    def choice(options: Optional[Sequence[Any]] = None) -> Any:
        if not options:
            raise ValueError('random.choice needs a non-empty sequence')
        return rng.choice(list(options))

    return {
        'uuid': generate_id(),
        'int': lambda min_value=0, max_value=100: rng.randint(min_value, max_value),
        'float': lambda min_value=0, max_value=1: rng.uniform(min_value, max_value),
        'bool': lambda: rng.random() < 0.5,
        'choice': choice
    }


def date_namespace() -> Dict[str, Any]:
    """Snapshot of the current time as ISO string, epoch ms and epoch seconds."""
    now = utc_now()
    timestamp = int(now.timestamp() * 1000)
    return {
        'now': isoformat(now),
        'timestamp': timestamp,
        'unix': timestamp // 1000
    }


class ResponseGenerator:
    """
    Render route responses for matched requests.

    Example:
        generator = ResponseGenerator(create_fake_data_provider('builtin'))
        response = generator.generate(
            route.response,
            params={'id': '7'},
            body=None,
            headers={}
        )
        print(response.status, response.body)
    """

    def __init__(
        self,
        fake_data: Optional[FakeDataProvider] = None,
        renderer: Optional[TemplateRenderer] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize response generator.

        Args:
            fake_data: Provider for the faker namespace (Faker-backed if None)
            renderer: Template renderer (a new TemplateRenderer if None)
            rng: Random source for the random namespace
        """
        self.fake_data = fake_data or create_fake_data_provider()
        self.renderer = renderer or TemplateRenderer()
        self.rng = rng or random.Random()
        self._faker = faker_namespace(self.fake_data)

    def build_context(
        self,
        params: Optional[Dict[str, str]] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """Assemble a fresh template context for one request."""
        return {
            'params': dict(params or {}),
            'body': copy.deepcopy(body),
            'headers': dict(headers or {}),
            'faker': self._faker,
            'date': date_namespace(),
            'random': random_namespace(self.rng)
        }

    def generate(
        self,
        spec: ResponseSpec,
        params: Optional[Dict[str, str]] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> RenderedResponse:
        """
        Render a response spec for one request.

        Args:
            spec: Route response spec (left untouched)
            params: Bound path parameters
            body: Parsed request body
            headers: Request headers

        Returns:
            RenderedResponse with rendered headers and body
        """
        context = self.build_context(params, body, headers)
        rendered_headers = self.renderer.render(spec.headers, context)

        return RenderedResponse(
            status=spec.status,
            headers={str(k): v if isinstance(v, str) else stringify(v) for k, v in rendered_headers.items()},
            body=self.renderer.render(spec.body, context),
            delay=spec.delay
        )


ROUTE_TEMPLATES: List[Dict[str, Any]] = [
    {
        'name': 'User List',
        'method': 'GET',
        'path': '/users',
        'response': {
            'status': 200,
            'headers': {'Content-Type': 'application/json'},
            'body': {
                'users': [
                    {
                        'id': '{{random.int}}',
                        'name': '{{faker.name.fullName}}',
                        'email': '{{faker.internet.email}}',
                        'createdAt': '{{date.now}}'
                    }
                ],
                'total': 1
            },
            'delay': 0
        }
    },
    {
        'name': 'User by ID',
        'method': 'GET',
        'path': '/users/:id',
        'response': {
            'status': 200,
            'headers': {'Content-Type': 'application/json'},
            'body': {
                'id': '{{params.id}}',
                'name': '{{faker.name.fullName}}',
                'email': '{{faker.internet.email}}',
                'address': {
                    'street': '{{faker.address.street}}',
                    'city': '{{faker.address.city}}',
                    'country': '{{faker.address.country}}'
                },
                'createdAt': '{{date.now}}'
            },
            'delay': 0
        }
    },
    {
        'name': 'Create User',
        'method': 'POST',
        'path': '/users',
        'response': {
            'status': 201,
            'headers': {'Content-Type': 'application/json'},
            'body': {
                'id': '{{random.int}}',
                'name': '{{body.name}}',
                'email': '{{body.email}}',
                'createdAt': '{{date.now}}'
            },
            'delay': 100
        }
    },
    {
        'name': 'Error Response',
        'method': 'GET',
        'path': '/error',
        'response': {
            'status': 500,
            'headers': {'Content-Type': 'application/json'},
            'body': {
                'error': 'Internal Server Error',
                'message': 'Something went wrong',
                'timestamp': '{{date.now}}'
            },
            'delay': 0
        }
    }
]


def get_route_templates() -> List[Dict[str, Any]]:
    """Starter routes offered to users when they add a route."""
    return copy.deepcopy(ROUTE_TEMPLATES)
