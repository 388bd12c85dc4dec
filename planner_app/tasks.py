import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from .access import accessible_project_ids, load_project, require_projects_access, task_access
from .db import Task, db
from .errors import NotFoundError, ValidationError
from .listing import list_params, sort_and_filter
from .validation import (
    check_date_range,
    check_task_changes,
    existing_user,
    is_valid_id,
    json_body,
    parse_date,
    parse_status,
    require_text,
    task_changes,
)

logger = logging.getLogger(__name__)

tasks_bp = Blueprint('tasks', __name__)


def _bulk_tasks(data, message):
    """Load every task named in ``ids`` after checking access to all their projects."""
    ids = data.get('ids')
    if not isinstance(ids, list) or not ids or not all(is_valid_id(i) for i in ids):
        raise ValidationError('Invalid task IDs')
    unique = list(dict.fromkeys(ids))
    tasks = Task.query.filter(Task.id.in_(unique)).all()
    if len(tasks) != len(unique):
        raise NotFoundError('Some tasks were not found')
    require_projects_access({t.project_id for t in tasks}, message)
    return tasks


@tasks_bp.get('')
@login_required
def list_tasks():
    query = Task.query.filter(Task.project_id.in_(accessible_project_ids(current_user)))
    tasks = sort_and_filter(query, **list_params())
    return jsonify({'success': True, 'data': [t.to_dict() for t in tasks]})


@tasks_bp.post('')
@login_required
def create_task():
    data = json_body()
    project = load_project(data.get('projectId'), message='Not authorized to create tasks in this project')
    title = require_text(data, 'title', 'Title is required')
    description = data.get('description') or ''
    if not isinstance(description, str):
        raise ValidationError('Description must be a string')
    status = parse_status(data.get('status') or 'todo')
    if data.get('startDate') is None or data.get('endDate') is None:
        raise ValidationError('startDate and endDate are required')
    start = parse_date(data['startDate'], 'startDate')
    end = parse_date(data['endDate'], 'endDate')
    check_date_range(start, end)
    assignee = existing_user(data['assignedTo']) if data.get('assignedTo') else current_user
    task = Task(
        title=title,
        description=description.strip(),
        status=status,
        start_date=start,
        end_date=end,
        assigned_to_id=assignee.id,
        created_by_id=current_user.id,
        project_id=project.id,
    )
    db.session.add(task)
    db.session.commit()
    logger.info('Task %s created in project %s by %s', task.id, project.id, current_user.id)
    return jsonify({'success': True, 'data': task.to_dict()}), 201


@tasks_bp.patch('/bulk')
@login_required
def bulk_update_tasks():
    data = json_body()
    tasks = _bulk_tasks(data, 'Not authorized to update some of these tasks')
    changes = task_changes(data.get('update'))
    for task in tasks:
        check_task_changes(task, changes)
    for task in tasks:
        for attr, value in changes.items():
            setattr(task, attr, value)
    db.session.commit()
    logger.info('Bulk updated %d tasks for %s', len(tasks), current_user.id)
    return jsonify({'success': True, 'data': {'modifiedCount': len(tasks)}})


@tasks_bp.delete('/bulk')
@login_required
def bulk_delete_tasks():
    data = json_body()
    tasks = _bulk_tasks(data, 'Not authorized to delete some of these tasks')
    for task in tasks:
        db.session.delete(task)
    db.session.commit()
    logger.info('Bulk deleted %d tasks for %s', len(tasks), current_user.id)
    return jsonify({'success': True, 'data': {'deletedCount': len(tasks)}})


@tasks_bp.get('/<task_id>')
@login_required
@task_access()
def get_task(task):
    return jsonify({'success': True, 'data': task.to_dict()})


@tasks_bp.patch('/<task_id>')
@login_required
@task_access(message='Not authorized to update this task')
def update_task(task):
    changes = task_changes(json_body())
    check_task_changes(task, changes)
    for attr, value in changes.items():
        setattr(task, attr, value)
    db.session.commit()
    logger.info('Task %s updated by %s', task.id, current_user.id)
    return jsonify({'success': True, 'data': task.to_dict()})


@tasks_bp.delete('/<task_id>')
@login_required
@task_access(message='Not authorized to delete this task')
def delete_task(task):
    db.session.delete(task)
    db.session.commit()
    logger.info('Task %s deleted by %s', task.id, current_user.id)
    return jsonify({'success': True, 'data': {'message': 'Task deleted successfully'}})
