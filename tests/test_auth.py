from datetime import datetime, timedelta, UTC

import jwt
from flask_jwt_extended import create_access_token
from werkzeug.security import check_password_hash

from planner_app.db import User, db
from conftest import register


def test_register_returns_user_and_token(client, app):
    resp = client.post('/auth/register', json={'email': 'New@Example.com', 'password': 'secret1', 'fullName': 'New User'})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['success'] is True
    assert body['data']['user']['email'] == 'new@example.com'
    assert body['data']['user']['fullName'] == 'New User'
    assert body['data']['token']
    with app.app_context():
        user = User.query.filter_by(email='new@example.com').first()
        assert user.password_hash != 'secret1'
        assert check_password_hash(user.password_hash, 'secret1')


def test_duplicate_email_rejected_without_second_record(client, app):
    register(client, 'dup@example.com')
    for email in ('dup@example.com', 'DUP@example.com'):
        resp = client.post('/auth/register', json={'email': email, 'password': 'another1', 'fullName': 'Someone Else'})
        assert resp.status_code == 400
        assert resp.get_json() == {'success': False, 'error': 'Email already registered'}
    with app.app_context():
        assert User.query.filter_by(email='dup@example.com').count() == 1


def test_register_validation(client):
    cases = [
        ({'email': 'a@example.com', 'password': 'secret1'}, 'All fields are required'),
        ({'email': 'not-an-email', 'password': 'secret1', 'fullName': 'Ann Lee'}, 'Invalid email format'),
        ({'email': 'a@example.com', 'password': '123', 'fullName': 'Ann Lee'}, 'Password must be at least 6 characters'),
        ({'email': 'a@example.com', 'password': 'secret1', 'fullName': 'A'}, 'Full name must be at least 2 characters'),
    ]
    for body, message in cases:
        resp = client.post('/auth/register', json=body)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == message


def test_login_success(client):
    register(client, 'login@example.com', password='Passw0rd!')
    resp = client.post('/auth/login', json={'email': 'LOGIN@example.com', 'password': 'Passw0rd!'})
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['user']['email'] == 'login@example.com'
    me = client.get('/auth/me', headers={'Authorization': f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.get_json()['data']['user']['email'] == 'login@example.com'


def test_login_failures_share_generic_message(client):
    register(client, 'known@example.com', password='Passw0rd!')
    wrong_password = client.post('/auth/login', json={'email': 'known@example.com', 'password': 'nope-nope'})
    unknown_email = client.post('/auth/login', json={'email': 'ghost@example.com', 'password': 'Passw0rd!'})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.get_json() == unknown_email.get_json() == {'success': False, 'error': 'Invalid credentials'}


def test_login_requires_fields(client):
    resp = client.post('/auth/login', json={'email': 'x@example.com'})
    assert resp.status_code == 400


def test_protected_route_token_checks(client, app):
    user, headers = register(client, 'tok@example.com')
    assert client.get('/auth/me').get_json()['error'] == 'No token provided'

    resp = client.get('/auth/me', headers={'Authorization': headers['Authorization'].replace('Bearer', 'Token')})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid token format'

    resp = client.get('/auth/me', headers={'Authorization': 'Bearer not.a.jwt'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Malformed token'

    forged = jwt.encode({'sub': user['id'], 'exp': datetime.now(UTC) + timedelta(hours=1)}, 'wrong-secret', algorithm='HS256')
    resp = client.get('/auth/me', headers={'Authorization': f'Bearer {forged}'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid token signature'

    with app.app_context():
        expired = create_access_token(identity=user['id'], expires_delta=timedelta(seconds=-10))
    resp = client.get('/auth/me', headers={'Authorization': f'Bearer {expired}'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Token has expired'


def test_token_for_removed_user_rejected(client, app):
    user, headers = register(client, 'gone@example.com')
    with app.app_context():
        db.session.delete(db.session.get(User, user['id']))
        db.session.commit()
    resp = client.get('/auth/me', headers=headers)
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'User not found'


def test_each_request_authenticates_its_own_token(client):
    _, first = register(client, 'first@example.com', 'First User')
    _, second = register(client, 'second@example.com', 'Second User')
    assert client.get('/auth/me', headers=first).get_json()['data']['user']['email'] == 'first@example.com'
    assert client.get('/auth/me', headers=second).get_json()['data']['user']['email'] == 'second@example.com'


def test_bearer_requests_do_not_set_session_cookie(client):
    _, headers = register(client, 'cookie@example.com')
    resp = client.get('/auth/me', headers=headers)
    assert resp.status_code == 200
    assert 'Set-Cookie' not in resp.headers
    resp = client.get('/projects', headers=headers)
    assert 'Set-Cookie' not in resp.headers
