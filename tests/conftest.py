import pytest

from planner_app import create_app


@pytest.fixture()
def app():
    return create_app(testing=True)


@pytest.fixture()
def client(app):
    return app.test_client()


def register(client, email, full_name='Test User', password='Passw0rd!'):
    resp = client.post('/auth/register', json={'email': email, 'password': password, 'fullName': full_name})
    assert resp.status_code == 201, resp.get_json()
    data = resp.get_json()['data']
    return data['user'], {'Authorization': f"Bearer {data['token']}"}


def create_project(client, headers, name='Website relaunch', description='Public site rebuild', members=None):
    resp = client.post('/projects', json={'name': name, 'description': description, 'members': members or []},
                       headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['data']


def create_task(client, headers, project_id, title='Draft sitemap', start='2025-01-03', end='2025-01-05', **extra):
    body = {'projectId': project_id, 'title': title, 'description': f'{title} details',
            'startDate': start, 'endDate': end, **extra}
    resp = client.post('/tasks', json=body, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['data']


@pytest.fixture()
def team(client):
    """Alice owns a project with Bob as member; Carol is an outsider."""
    alice, alice_h = register(client, 'alice@example.com', 'Alice Admin')
    bob, bob_h = register(client, 'bob@example.com', 'Bob Builder')
    carol, carol_h = register(client, 'carol@example.com', 'Carol Outsider')
    project = create_project(client, alice_h, members=[bob['id']])
    return {
        'alice': (alice, alice_h),
        'bob': (bob, bob_h),
        'carol': (carol, carol_h),
        'project': project,
    }
