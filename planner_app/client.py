"""HTTP client and local state store for the planner API.

``PlannerClient`` wraps the REST endpoints and the ``{success, data}``
envelope. ``PlannerStore`` keeps the current user's projects and the active
project's tasks keyed by id; every mutation is sent to the server and then
the affected collections are invalidated and refetched, so the last server
response always wins. Outcomes are queued as transient notifications for the
caller to display.
"""
import logging
from collections import deque

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
MAX_NOTIFICATIONS = 50


class ApiClientError(Exception):
    def __init__(self, status_code, message):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class PlannerClient:
    def __init__(self, base_url='http://localhost:5000', session=None, timeout=DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token = None
        self.user = None
        self.login_required = False

    # --- transport ---
    def _request(self, method, path, body=None, params=None):
        headers = {'Content-Type': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        response = self.session.request(method, self.base_url + path, json=body, params=params,
                                        headers=headers, timeout=self.timeout)
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if response.status_code == 401:
            # Stored credentials are no longer usable
            self.logout()
            self.login_required = True
        if response.status_code >= 400 or not payload or not payload.get('success'):
            message = (payload or {}).get('error') or f'Request failed with status {response.status_code}'
            logger.info('%s %s failed: %s %s', method, path, response.status_code, message)
            raise ApiClientError(response.status_code, message)
        return payload['data']

    def _store_credentials(self, data):
        self.token = data.get('token', self.token)
        self.user = data['user']
        self.login_required = False
        return data

    # --- auth ---
    def register(self, email, password, full_name):
        return self._store_credentials(self._request('POST', '/auth/register', {
            'email': email, 'password': password, 'fullName': full_name}))

    def login(self, email, password):
        return self._store_credentials(self._request('POST', '/auth/login', {'email': email, 'password': password}))

    def me(self):
        return self._store_credentials(self._request('GET', '/auth/me'))

    def logout(self):
        self.token = None
        self.user = None

    # --- projects ---
    def get_projects(self):
        return self._request('GET', '/projects')

    def get_project(self, project_id):
        return self._request('GET', f'/projects/{project_id}')

    def create_project(self, name, description='', members=None):
        return self._request('POST', '/projects', {'name': name, 'description': description, 'members': members or []})

    def update_project(self, project_id, **fields):
        return self._request('PATCH', f'/projects/{project_id}', fields)

    def delete_project(self, project_id):
        return self._request('DELETE', f'/projects/{project_id}')

    def get_project_tasks(self, project_id, **params):
        return self._request('GET', f'/projects/{project_id}/tasks', params=params or None)

    # --- tasks ---
    def get_tasks(self, **params):
        return self._request('GET', '/tasks', params=params or None)

    def get_task(self, task_id):
        return self._request('GET', f'/tasks/{task_id}')

    def create_task(self, **fields):
        return self._request('POST', '/tasks', fields)

    def update_task(self, task_id, **fields):
        return self._request('PATCH', f'/tasks/{task_id}', fields)

    def delete_task(self, task_id):
        return self._request('DELETE', f'/tasks/{task_id}')

    def bulk_update_tasks(self, ids, update):
        return self._request('PATCH', '/tasks/bulk', {'ids': list(ids), 'update': update})

    def bulk_delete_tasks(self, ids):
        return self._request('DELETE', '/tasks/bulk', {'ids': list(ids)})


class PlannerStore:
    def __init__(self, client):
        self.client = client
        self.projects = {}
        self.tasks = {}
        self.active_project_id = None
        self.notifications = deque(maxlen=MAX_NOTIFICATIONS)

    def notify(self, level, message):
        self.notifications.append({'level': level, 'message': message})

    def drain_notifications(self):
        items = list(self.notifications)
        self.notifications.clear()
        return items

    def _run(self, action, success_message=None):
        try:
            result = action()
        except ApiClientError as e:
            self.notify('error', e.message)
            if e.status_code == 401:
                self.clear()
            raise
        if success_message:
            self.notify('success', success_message)
        return result

    def clear(self):
        self.projects.clear()
        self.tasks.clear()
        self.active_project_id = None

    # --- invalidation ---
    def refresh_projects(self):
        projects = self._run(self.client.get_projects)
        self.projects = {p['id']: p for p in projects}
        if self.active_project_id not in self.projects:
            self.active_project_id = None
            self.tasks = {}
        return self.projects

    def refresh_tasks(self):
        if self.active_project_id is None:
            self.tasks = {}
            return self.tasks
        tasks = self._run(lambda: self.client.get_project_tasks(self.active_project_id))
        self.tasks = {t['id']: t for t in tasks}
        return self.tasks

    def select_project(self, project_id):
        if project_id not in self.projects:
            self.refresh_projects()
        if project_id not in self.projects:
            raise KeyError(project_id)
        self.active_project_id = project_id
        return self.refresh_tasks()

    # --- project mutations ---
    def create_project(self, name, description='', members=None):
        project = self._run(lambda: self.client.create_project(name, description, members), 'Project created')
        self.refresh_projects()
        return project

    def update_project(self, project_id, **fields):
        project = self._run(lambda: self.client.update_project(project_id, **fields), 'Project updated')
        self.refresh_projects()
        return project

    def delete_project(self, project_id):
        result = self._run(lambda: self.client.delete_project(project_id), 'Project deleted')
        self.refresh_projects()
        return result

    # --- task mutations (scoped to the active project) ---
    def _require_active(self):
        if self.active_project_id is None:
            raise RuntimeError('No active project selected')
        return self.active_project_id

    def create_task(self, **fields):
        project_id = self._require_active()
        task = self._run(lambda: self.client.create_task(projectId=project_id, **fields), 'Task created')
        self.refresh_tasks()
        return task

    def update_task(self, task_id, **fields):
        task = self._run(lambda: self.client.update_task(task_id, **fields), 'Task updated')
        self.refresh_tasks()
        return task

    def delete_task(self, task_id):
        result = self._run(lambda: self.client.delete_task(task_id), 'Task deleted')
        self.refresh_tasks()
        return result

    def bulk_update_tasks(self, ids, update):
        result = self._run(lambda: self.client.bulk_update_tasks(ids, update), 'Tasks updated')
        self.refresh_tasks()
        return result

    def bulk_delete_tasks(self, ids):
        result = self._run(lambda: self.client.bulk_delete_tasks(ids), 'Tasks deleted')
        self.refresh_tasks()
        return result

    # --- derived views ---
    def tasks_by_status(self):
        board = {'todo': [], 'inProgress': [], 'done': []}
        for task in self.tasks.values():
            board.setdefault(task['status'], []).append(task)
        return board
