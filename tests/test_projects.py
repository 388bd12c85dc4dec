from planner_app.db import Project, Task, db
from conftest import create_project, create_task, register


def test_create_project_includes_creator_as_member(client):
    alice, headers = register(client, 'alice@example.com', 'Alice Admin')
    project = create_project(client, headers, name='  Launch  ', description='Go live')
    assert project['name'] == 'Launch'
    assert project['createdBy'] == {'id': alice['id'], 'email': 'alice@example.com', 'fullName': 'Alice Admin'}
    assert [m['id'] for m in project['members']] == [alice['id']]


def test_create_project_validation(client):
    _, headers = register(client, 'alice@example.com')
    resp = client.post('/projects', json={'name': '   '}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Project name is required'
    resp = client.post('/projects', json={'name': 'P', 'members': ['zzz']}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Invalid member IDs'
    resp = client.post('/projects', json={'name': 'P', 'members': ['0' * 32]}, headers=headers)
    assert resp.status_code == 400


def test_projects_require_authentication(client):
    resp = client.get('/projects')
    assert resp.status_code == 401
    assert resp.get_json()['success'] is False


def test_list_projects_shows_owned_and_member_projects(client, team):
    _, bob_h = team['bob']
    _, carol_h = team['carol']
    carol_project = create_project(client, carol_h, name='Carol only')
    bob_ids = [p['id'] for p in client.get('/projects', headers=bob_h).get_json()['data']]
    carol_ids = [p['id'] for p in client.get('/projects', headers=carol_h).get_json()['data']]
    assert bob_ids == [team['project']['id']]
    assert carol_ids == [carol_project['id']]


def test_outsider_gets_403_on_every_project_operation(client, team):
    _, carol_h = team['carol']
    pid = team['project']['id']
    assert client.get(f'/projects/{pid}', headers=carol_h).status_code == 403
    assert client.get(f'/projects/{pid}/tasks', headers=carol_h).status_code == 403
    assert client.patch(f'/projects/{pid}', json={'name': 'Mine'}, headers=carol_h).status_code == 403
    assert client.delete(f'/projects/{pid}', headers=carol_h).status_code == 403


def test_member_reads_but_cannot_modify(client, team):
    _, bob_h = team['bob']
    pid = team['project']['id']
    assert client.get(f'/projects/{pid}', headers=bob_h).status_code == 200
    assert client.get(f'/projects/{pid}/tasks', headers=bob_h).status_code == 200
    resp = client.patch(f'/projects/{pid}', json={'name': 'Renamed'}, headers=bob_h)
    assert resp.status_code == 403
    assert resp.get_json()['error'] == 'Only the project creator can update this project'
    assert client.delete(f'/projects/{pid}', headers=bob_h).status_code == 403


def test_bad_and_missing_project_ids(client, team):
    _, alice_h = team['alice']
    resp = client.get('/projects/not-an-id', headers=alice_h)
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Invalid project ID'
    resp = client.get('/projects/' + 'a' * 32, headers=alice_h)
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'Project not found'


def test_creator_updates_fields_and_members(client, team):
    alice, alice_h = team['alice']
    bob, _ = team['bob']
    carol, carol_h = team['carol']
    pid = team['project']['id']
    resp = client.patch(f'/projects/{pid}', json={'name': 'Relaunch v2', 'members': [carol['id']]}, headers=alice_h)
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['name'] == 'Relaunch v2'
    assert data['description'] == 'Public site rebuild'
    assert {m['id'] for m in data['members']} == {alice['id'], carol['id']}
    assert bob['id'] not in {m['id'] for m in data['members']}
    assert client.get(f'/projects/{pid}', headers=carol_h).status_code == 200


def test_update_rejects_blank_fields(client, team):
    _, alice_h = team['alice']
    pid = team['project']['id']
    resp = client.patch(f'/projects/{pid}', json={'description': '  '}, headers=alice_h)
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Project description cannot be empty'


def test_delete_project_cascades_to_tasks(client, app, team):
    _, alice_h = team['alice']
    _, bob_h = team['bob']
    pid = team['project']['id']
    create_task(client, alice_h, pid, title='One')
    create_task(client, bob_h, pid, title='Two')
    other = create_project(client, alice_h, name='Keep me')
    kept = create_task(client, alice_h, other['id'], title='Survivor')

    resp = client.delete(f'/projects/{pid}', headers=alice_h)
    assert resp.status_code == 200
    assert resp.get_json()['data']['deletedTasks'] == 2
    with app.app_context():
        assert db.session.get(Project, pid) is None
        assert Task.query.filter_by(project_id=pid).count() == 0
        assert db.session.get(Task, kept['id']) is not None
    assert client.get(f'/projects/{pid}', headers=alice_h).status_code == 404


def test_project_tasks_listing(client, team):
    _, alice_h = team['alice']
    pid = team['project']['id']
    first = create_task(client, alice_h, pid, title='First')
    second = create_task(client, alice_h, pid, title='Second')
    data = client.get(f'/projects/{pid}/tasks', headers=alice_h).get_json()['data']
    assert {t['id'] for t in data} == {first['id'], second['id']}
    assert data[0]['assignedTo']['email'] == 'alice@example.com'


def test_null_members_leaves_member_set_unchanged(client, team):
    alice, alice_h = team['alice']
    bob, _ = team['bob']
    pid = team['project']['id']
    resp = client.patch(f'/projects/{pid}', json={'name': 'Renamed', 'members': None}, headers=alice_h)
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['name'] == 'Renamed'
    assert {m['id'] for m in data['members']} == {alice['id'], bob['id']}
