"""Project membership checks shared by the project, task and view routes."""
import logging
from functools import wraps

from flask_login import current_user

from .db import Project, Task, db
from .errors import AuthorizationError, NotFoundError
from .validation import require_id

logger = logging.getLogger(__name__)


def is_creator(user, project):
    return project.created_by_id == user.id


def can_access(user, project):
    """True if user created the project or is one of its members."""
    return is_creator(user, project) or any(m.id == user.id for m in project.members)


def _access_clause(user):
    return db.or_(Project.created_by_id == user.id, Project.members.any(id=user.id))


def accessible_projects_query(user):
    return Project.query.filter(_access_clause(user))


def accessible_project_ids(user):
    return db.select(Project.id).where(_access_clause(user))


def load_project(project_id, creator_only=False, message=None):
    require_id(project_id, 'project')
    project = db.session.get(Project, project_id)
    if not project:
        raise NotFoundError('Project not found')
    allowed = is_creator(current_user, project) if creator_only else can_access(current_user, project)
    if not allowed:
        logger.info('User %s denied access to project %s', current_user.id, project.id)
        raise AuthorizationError(message or 'Not authorized to access this project')
    return project


def load_task(task_id, message=None):
    require_id(task_id, 'task')
    task = db.session.get(Task, task_id)
    if not task:
        raise NotFoundError('Task not found')
    if not can_access(current_user, task.project):
        logger.info('User %s denied access to task %s', current_user.id, task.id)
        raise AuthorizationError(message or 'Not authorized to access this task')
    return task


def project_access(creator_only=False, message=None):
    """Resolve ``project_id`` from the route into ``project`` after the access check."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            kwargs['project'] = load_project(kwargs.pop('project_id'), creator_only, message)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def task_access(message=None):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            kwargs['task'] = load_task(kwargs.pop('task_id'), message)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def require_projects_access(project_ids, message):
    """Fail unless the current user can access every listed project."""
    wanted = set(project_ids)
    if not wanted:
        return
    allowed = accessible_projects_query(current_user).filter(Project.id.in_(wanted)).count()
    if allowed != len(wanted):
        logger.info('User %s denied bulk access to projects %s', current_user.id, sorted(wanted))
        raise AuthorizationError(message)
