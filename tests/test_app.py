from planner_app import create_app
from planner_app.config import Config


def test_health(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.get_json() == {'status': 'ok'}


def test_cors_preflight_allows_configured_origin(client):
    resp = client.options('/projects', headers={
        'Origin': 'http://localhost:5173',
        'Access-Control-Request-Method': 'POST',
        'Access-Control-Request-Headers': 'Authorization, Content-Type',
    })
    assert resp.status_code == 200
    assert resp.headers['Access-Control-Allow-Origin'] == 'http://localhost:5173'
    assert 'POST' in resp.headers['Access-Control-Allow-Methods']


def test_cors_ignores_unknown_origin(client):
    resp = client.get('/health', headers={'Origin': 'http://evil.example'})
    assert 'Access-Control-Allow-Origin' not in resp.headers


def test_unknown_route_uses_error_envelope(client):
    resp = client.get('/nowhere')
    assert resp.status_code == 404
    assert resp.get_json() == {'success': False, 'error': 'Not Found'}


def test_non_object_body_rejected(client):
    resp = client.post('/auth/register', json=['a', 'b'])
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Request body must be a JSON object'


def test_api_prefix_mounts_routes():
    app = create_app(testing=True, config=Config(API_PREFIX='/api'))
    client = app.test_client()
    resp = client.post('/api/auth/register', json={'email': 'p@example.com', 'password': 'secret1',
                                                   'fullName': 'Pre Fix'})
    assert resp.status_code == 201
    assert client.post('/auth/register', json={}).status_code == 404


def test_config_overrides_and_env(monkeypatch):
    monkeypatch.setenv('CORS_ORIGINS', 'https://a.example, https://b.example')
    monkeypatch.setenv('TOKEN_EXPIRES_HOURS', '2')
    config = Config(PORT=8080)
    assert config.CORS_ORIGINS == ['https://a.example', 'https://b.example']
    assert config.JWT_ACCESS_TOKEN_EXPIRES.total_seconds() == 7200
    assert config.as_dict()['PORT'] == 8080
