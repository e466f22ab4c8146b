"""
Tests for apimock Mock Server

Tests the FastAPI-based mock server including:
- Server settings
- Management API for configs and routes
- Catch-all mock endpoint
- Logs, statistics, templates
- Export/import and the test endpoint
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
import yaml
from fastapi.testclient import TestClient

from apimock.mock.server import (
    MockServer,
    ServerSettings,
    create_mock_server
)


@pytest.fixture
def server():
    """Mock server with deterministic fake data."""
    return MockServer(ServerSettings(fake_data_backend='builtin', faker_seed=1))


@pytest.fixture
def client(server):
    """Test client for the server app."""
    return TestClient(server.app)


@pytest.fixture
def users_config(client):
    """Config at /api with a GET /users/:id route."""
    config = client.post('/api/mock-configs', json={'name': 'Users', 'baseUrl': '/api'}).json()
    route = client.post(f"/api/mock-configs/{config['id']}/routes", json={
        'method': 'GET',
        'path': '/users/:id',
        'response': {
            'status': 200,
            'headers': {'Content-Type': 'application/json', 'X-User': '{{params.id}}'},
            'body': {'id': '{{params.id}}', 'q': '{{body.q}}'}
        }
    }).json()
    config['routes'] = [route]
    return config


@pytest.fixture
def export_document():
    """Export document with one config and one route."""
    return {
        'version': '1.0.0',
        'configs': [{
            'id': 'old-id',
            'name': 'Seeded',
            'baseUrl': '/v1',
            'enabled': True,
            'routes': [{
                'id': 'route-1',
                'method': 'GET',
                'path': '/ping',
                'response': {'status': 200, 'body': {'pong': True}}
            }]
        }]
    }


class TestServerSettings:
    """Test ServerSettings."""

    def test_defaults(self):
        """Test default settings."""
        settings = ServerSettings()

        assert settings.host == '127.0.0.1'
        assert settings.port == 8080
        assert settings.api_prefix == '/api'
        assert settings.mount_path == '/mock'
        assert settings.log_capacity == 1000
        assert settings.max_delay_ms == 30000
        assert settings.fake_data_backend == 'faker'

    def test_prefixes_normalized(self):
        """Test URL prefixes get a single leading slash."""
        settings = ServerSettings(api_prefix='admin/', mount_path='/mocks/')

        assert settings.api_prefix == '/admin'
        assert settings.mount_path == '/mocks'

    @pytest.mark.parametrize('kwargs', [
        {'fake_data_backend': 'nope'},
        {'log_capacity': 0},
        {'max_delay_ms': -1}
    ])
    def test_invalid_settings(self, kwargs):
        """Test invalid settings are rejected."""
        with pytest.raises(ValueError):
            ServerSettings(**kwargs)

    def test_from_dict_ignores_unknown_keys(self):
        """Test unknown keys are dropped."""
        settings = ServerSettings.from_dict({'port': 9000, 'colour': 'blue'})

        assert settings.port == 9000

    def test_from_yaml(self, tmp_path):
        """Test loading settings from YAML."""
        path = tmp_path / 'settings.yaml'
        path.write_text(yaml.safe_dump({'port': 9100, 'fake_data_backend': 'builtin', 'faker_seed': 3}))

        settings = ServerSettings.from_yaml(str(path))

        assert settings.port == 9100
        assert settings.fake_data_backend == 'builtin'
        assert settings.faker_seed == 3


class TestConfigEndpoints:
    """Test /api/mock-configs endpoints."""

    def test_empty_list(self, client):
        """Test listing with no configs."""
        response = client.get('/api/mock-configs')

        assert response.status_code == 200
        assert response.json() == []

    def test_create_config(self, client):
        """Test creating a config with defaults."""
        response = client.post('/api/mock-configs', json={})

        assert response.status_code == 201
        data = response.json()
        assert data['name'] == 'New Mock Server'
        assert data['baseUrl'] == '/api'
        assert data['enabled'] is True
        assert data['routes'] == []
        assert data['createdAt'].endswith('Z')

    def test_create_config_invalid_json(self, client):
        """Test non-JSON bodies are rejected."""
        response = client.post(
            '/api/mock-configs',
            content='not json',
            headers={'Content-Type': 'application/json'}
        )

        assert response.status_code == 400
        assert 'error' in response.json()

    def test_create_config_enabled_must_be_bool(self, client):
        """Test a string 'false' is rejected rather than read as enabled."""
        response = client.post('/api/mock-configs', json={'enabled': 'false'})

        assert response.status_code == 400
        assert client.get('/api/mock-configs').json() == []

    def test_get_config(self, client, users_config):
        """Test fetching one config."""
        response = client.get(f"/api/mock-configs/{users_config['id']}")

        assert response.status_code == 200
        assert response.json()['routes'][0]['path'] == '/users/:id'

    def test_get_unknown_config(self, client):
        """Test unknown config gives 404."""
        response = client.get('/api/mock-configs/missing')

        assert response.status_code == 404
        assert response.json() == {'error': 'Mock configuration not found'}

    def test_update_config(self, client, users_config):
        """Test updating a config."""
        response = client.put(
            f"/api/mock-configs/{users_config['id']}",
            json={'name': 'Renamed', 'enabled': False}
        )

        assert response.status_code == 200
        assert response.json()['name'] == 'Renamed'
        assert response.json()['enabled'] is False

    def test_delete_config(self, client, users_config):
        """Test deleting a config."""
        response = client.delete(f"/api/mock-configs/{users_config['id']}")

        assert response.status_code == 204
        assert client.get('/api/mock-configs').json() == []
        assert client.delete(f"/api/mock-configs/{users_config['id']}").status_code == 404


class TestRouteEndpoints:
    """Test route management endpoints."""

    def test_add_route(self, users_config):
        """Test route created by the fixture."""
        route = users_config['routes'][0]

        assert route['method'] == 'GET'
        assert route['id']
        assert route['response']['delay'] == 0

    def test_add_route_invalid(self, client, users_config):
        """Test invalid routes give 400."""
        response = client.post(
            f"/api/mock-configs/{users_config['id']}/routes",
            json={'path': '/x', 'response': {'delay': 999999}}
        )

        assert response.status_code == 400

    def test_add_route_unknown_config(self, client):
        """Test adding a route to an unknown config gives 404."""
        response = client.post('/api/mock-configs/missing/routes', json={'path': '/x'})

        assert response.status_code == 404

    def test_update_route(self, client, users_config):
        """Test updating a route."""
        route = users_config['routes'][0]

        response = client.put(
            f"/api/mock-configs/{users_config['id']}/routes/{route['id']}",
            json={'response': {'status': 418}}
        )

        assert response.status_code == 200
        assert response.json()['response']['status'] == 418
        assert response.json()['updatedAt']

    def test_update_unknown_route(self, client, users_config):
        """Test unknown route gives 404."""
        response = client.put(
            f"/api/mock-configs/{users_config['id']}/routes/missing",
            json={'path': '/x'}
        )

        assert response.status_code == 404
        assert response.json() == {'error': 'Route not found'}

    def test_delete_route(self, client, users_config):
        """Test deleting a route."""
        route = users_config['routes'][0]

        response = client.delete(f"/api/mock-configs/{users_config['id']}/routes/{route['id']}")

        assert response.status_code == 204
        assert client.get('/mock/api/users/1').status_code == 404


class TestMockEndpoint:
    """Test the catch-all mock endpoint."""

    def test_matched_request(self, client, users_config):
        """Test a matching request returns the rendered response."""
        response = client.get('/mock/api/users/7')

        assert response.status_code == 200
        assert response.json() == {'id': '7', 'q': '{{body.q}}'}
        assert response.headers['X-User'] == '7'

    def test_request_body_in_template(self, client, users_config):
        """Test JSON request bodies are available to templates."""
        response = client.request('GET', '/mock/api/users/7', json={'q': 'search'})

        assert response.json()['q'] == 'search'

    def test_query_string_ignored(self, client, users_config):
        """Test query strings don't affect matching."""
        response = client.get('/mock/api/users/7?expand=true')

        assert response.status_code == 200
        log = client.get('/api/mock-logs').json()
        assert log[0]['url'] == '/api/users/7?expand=true'

    def test_unmatched_request(self, client, users_config):
        """Test unmatched requests give a descriptive 404."""
        response = client.post('/mock/api/nothing', json={})

        assert response.status_code == 404
        assert response.json() == {
            'error': 'Mock endpoint not found',
            'message': 'No matching mock route found',
            'path': '/api/nothing',
            'method': 'POST'
        }

    def test_mount_root(self, client):
        """Test the mount point itself is handled."""
        response = client.get('/mock')

        assert response.status_code == 404
        assert response.json()['path'] == '/'

    def test_disabled_config(self, client, users_config):
        """Test disabled configs don't serve requests."""
        client.put(f"/api/mock-configs/{users_config['id']}", json={'enabled': False})

        assert client.get('/mock/api/users/7').status_code == 404

    def test_no_content_response(self, client, users_config):
        """Test 204 routes send an empty body."""
        client.post(f"/api/mock-configs/{users_config['id']}/routes", json={
            'method': 'DELETE', 'path': '/users/:id', 'response': {'status': 204}
        })

        response = client.delete('/mock/api/users/7')

        assert response.status_code == 204
        assert response.content == b''

    def test_text_response(self, client, users_config):
        """Test string bodies with a non-JSON content type are sent as-is."""
        client.post(f"/api/mock-configs/{users_config['id']}/routes", json={
            'method': 'GET',
            'path': '/hello/:name',
            'response': {'headers': {'Content-Type': 'text/plain'}, 'body': 'Hello {{params.name}}'}
        })

        response = client.get('/mock/api/hello/Ada')

        assert response.status_code == 200
        assert response.text == 'Hello Ada'
        assert response.headers['content-type'].startswith('text/plain')

    def test_non_latin1_header_percent_encoded(self, client, users_config):
        """Test header values outside latin-1 are percent-encoded instead of failing."""
        client.post(f"/api/mock-configs/{users_config['id']}/routes", json={
            'method': 'GET',
            'path': '/names/:name',
            'response': {'headers': {'X-Name': '日本 {{params.name}}'}, 'body': {'ok': True}}
        })

        response = client.get('/mock/api/names/7')

        assert response.status_code == 200
        assert response.headers['X-Name'] == '%E6%97%A5%E6%9C%AC 7'
        assert response.json() == {'ok': True}

    def test_unicode_path_param_in_header(self, client, users_config):
        """Test a header built from a non-ASCII path segment is still served."""
        response = client.get('/mock/api/users/日本')

        assert response.status_code == 200
        assert response.headers['X-User'] == '%E6%97%A5%E6%9C%AC'
        assert response.json()['id'] == '日本'

    def test_line_breaks_stripped_from_headers(self, client, users_config):
        """Test CR/LF in header values can't start a new header."""
        client.post(f"/api/mock-configs/{users_config['id']}/routes", json={
            'method': 'GET',
            'path': '/note',
            'response': {'headers': {'X-Note': 'a\r\nX-Injected: yes'}}
        })

        response = client.get('/mock/api/note')

        assert response.status_code == 200
        assert response.headers['X-Note'] == 'aX-Injected: yes'
        assert 'X-Injected' not in response.headers

    @patch('apimock.mock.processor.asyncio.sleep', new_callable=AsyncMock)
    def test_delay_applied(self, mock_sleep, client, users_config):
        """Test route delay is awaited before responding."""
        client.post(f"/api/mock-configs/{users_config['id']}/routes", json={
            'method': 'GET', 'path': '/slow', 'response': {'delay': 100}
        })

        response = client.get('/mock/api/slow')

        assert response.status_code == 200
        mock_sleep.assert_any_await(0.1)


class TestIntrospectionEndpoints:
    """Test logs, statistics and templates."""

    def test_logs_most_recent_first(self, client, users_config):
        """Test logs list newest requests first."""
        client.get('/mock/api/users/1')
        client.get('/mock/api/missing')

        log = client.get('/api/mock-logs').json()

        assert [e['url'] for e in log] == ['/api/missing', '/api/users/1']
        assert [e['matched'] for e in log] == [False, True]

    def test_logs_limit(self, client, users_config):
        """Test the limit query parameter."""
        for i in range(5):
            client.get(f'/mock/api/users/{i}')

        assert len(client.get('/api/mock-logs?limit=2').json()) == 2

    def test_clear_logs(self, client, users_config):
        """Test clearing logs resets statistics."""
        client.get('/mock/api/users/1')

        response = client.delete('/api/mock-logs')

        assert response.status_code == 204
        assert client.get('/api/mock-logs').json() == []
        assert client.get('/api/mock-stats').json()['totalRequests'] == 0

    def test_stats(self, client, users_config):
        """Test statistics payload."""
        client.get('/mock/api/users/1')
        client.get('/mock/api/missing')

        stats = client.get('/api/mock-stats').json()

        assert stats['totalRequests'] == 2
        assert stats['matchedRequests'] == 1
        assert stats['totalConfigs'] == 1
        assert stats['enabledConfigs'] == 1
        assert stats['totalRoutes'] == 1
        assert stats['recentRequests'] == 2

    def test_templates(self, client):
        """Test route templates endpoint."""
        templates = client.get('/api/mock-templates').json()

        assert len(templates) == 4
        assert templates[1]['path'] == '/users/:id'


class TestImportExportEndpoints:
    """Test export, import and test endpoints."""

    def test_export(self, client, users_config):
        """Test exporting configs."""
        document = client.get('/api/mock-export').json()

        assert document['version'] == '1.0.0'
        assert document['configs'][0]['name'] == 'Users'

    def test_import(self, client, export_document):
        """Test importing an export document."""
        response = client.post('/api/mock-import', json=export_document)

        assert response.status_code == 200
        assert response.json() == {'success': True, 'imported': 1}

        configs = client.get('/api/mock-configs').json()
        assert configs[0]['id'] != 'old-id'
        assert configs[0]['routes'][0]['id'] == 'route-1'
        assert configs[0]['importedAt']
        assert client.get('/mock/v1/ping').json() == {'pong': True}

    def test_import_malformed(self, client):
        """Test malformed documents give 400 and change nothing."""
        response = client.post('/api/mock-import', json={'configs': 'nope'})

        assert response.status_code == 400
        assert response.json() == {'success': False, 'error': 'Invalid import data format'}
        assert client.get('/api/mock-configs').json() == []

    def test_import_invalid_json(self, client):
        """Test unparseable import bodies give 400."""
        response = client.post(
            '/api/mock-import',
            content='{broken',
            headers={'Content-Type': 'application/json'}
        )

        assert response.status_code == 400
        assert response.json()['success'] is False

    def test_mock_test_matched(self, client, users_config):
        """Test dry-run of a matching request."""
        response = client.post('/api/mock-test', json={'method': 'GET', 'url': '/api/users/5'})

        data = response.json()
        assert data['success'] is True
        assert data['response']['body']['id'] == '5'
        assert data['response']['statusText'] == 'OK'
        assert data['extractedParams'] == {'id': '5'}
        assert data['matchedConfig']['id'] == users_config['id']

    def test_mock_test_unmatched(self, client):
        """Test dry-run of a request nothing matches."""
        response = client.post('/api/mock-test', json={'url': '/api/none'})

        assert response.json() == {'success': False, 'error': 'No matching mock route found'}

    def test_mock_test_requires_url(self, client):
        """Test url is required."""
        response = client.post('/api/mock-test', json={'method': 'GET'})

        assert response.status_code == 400

    @pytest.mark.parametrize('payload, message', [
        ({'url': 5}, 'url must be a string'),
        ({'url': '/api/users/1', 'method': 5}, 'method must be a string'),
        ({'url': '/api/users/1', 'headers': [1, 2]}, 'headers must be an object')
    ])
    def test_mock_test_field_types(self, client, users_config, payload, message):
        """Test wrongly typed dry-run fields give 400 and aren't logged."""
        response = client.post('/api/mock-test', json=payload)

        assert response.status_code == 400
        assert response.json() == {'error': message}
        assert client.get('/api/mock-logs').json() == []


class TestResetEndpoint:
    """Test DELETE /api/mock-data."""

    def test_reset_all(self, client, users_config):
        """Test configs, logs and counters are all cleared."""
        client.get('/mock/api/users/1')

        response = client.delete('/api/mock-data')

        assert response.status_code == 204
        assert client.get('/api/mock-configs').json() == []
        assert client.get('/api/mock-logs').json() == []
        stats = client.get('/api/mock-stats').json()
        assert stats['totalRequests'] == 0
        assert stats['matchedRequests'] == 0
        assert stats['totalConfigs'] == 0
        assert stats['totalRoutes'] == 0
        assert client.get('/mock/api/users/1').status_code == 404


class TestCreateMockServer:
    """Test create_mock_server convenience function."""

    def test_overrides(self):
        """Test keyword arguments override defaults."""
        server = create_mock_server(port=9001, fake_data_backend='builtin', max_delay_ms=500)

        assert server.settings.port == 9001
        assert server.settings.host == '127.0.0.1'
        assert server.registry.max_delay_ms == 500

    def test_settings_file_and_overrides(self, tmp_path):
        """Test settings file values are kept unless overridden."""
        path = tmp_path / 'settings.yaml'
        path.write_text(yaml.safe_dump({'host': '0.0.0.0', 'port': 9200, 'fake_data_backend': 'builtin'}))

        server = create_mock_server(port=9300, settings_file=str(path))

        assert server.settings.host == '0.0.0.0'
        assert server.settings.port == 9300

    def test_seed_file(self, tmp_path, export_document):
        """Test configs are imported from the seed file at startup."""
        path = tmp_path / 'mocks.json'
        path.write_text(json.dumps(export_document))

        server = create_mock_server(seed_file=str(path), fake_data_backend='builtin')
        client = TestClient(server.app)

        assert len(server.registry.list_configs()) == 1
        assert client.get('/mock/v1/ping').status_code == 200

    def test_missing_seed_file(self, tmp_path):
        """Test a missing seed file fails at startup."""
        with pytest.raises(FileNotFoundError):
            create_mock_server(seed_file=str(tmp_path / 'missing.json'), fake_data_backend='builtin')
