import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from .access import accessible_projects_query, project_access
from .db import Project, Task, User, db
from .errors import ValidationError
from .listing import list_params, sort_and_filter
from .validation import existing_user_ids, json_body, optional_text, require_text

logger = logging.getLogger(__name__)

projects_bp = Blueprint('projects', __name__)


def _members_with_creator(member_ids, creator_id):
    ids = list(dict.fromkeys(member_ids + [creator_id]))
    return User.query.filter(User.id.in_(ids)).all()


@projects_bp.get('')
@login_required
def list_projects():
    projects = accessible_projects_query(current_user).order_by(Project.created_at.desc()).all()
    return jsonify({'success': True, 'data': [p.to_dict() for p in projects]})


@projects_bp.post('')
@login_required
def create_project():
    data = json_body()
    name = require_text(data, 'name', 'Project name is required')
    description = data.get('description') or ''
    if not isinstance(description, str):
        raise ValidationError('Project description must be a string')
    member_ids = existing_user_ids(data.get('members') or [], 'Invalid member IDs')
    project = Project(
        name=name,
        description=description.strip(),
        created_by_id=current_user.id,
        members=_members_with_creator(member_ids, current_user.id),
    )
    db.session.add(project)
    db.session.commit()
    logger.info('Project %s created by %s', project.id, current_user.id)
    return jsonify({'success': True, 'data': project.to_dict()}), 201


@projects_bp.get('/<project_id>')
@login_required
@project_access()
def get_project(project):
    return jsonify({'success': True, 'data': project.to_dict()})


@projects_bp.patch('/<project_id>')
@login_required
@project_access(creator_only=True, message='Only the project creator can update this project')
def update_project(project):
    data = json_body()
    name = optional_text(data, 'name', 'Project name cannot be empty')
    description = optional_text(data, 'description', 'Project description cannot be empty')
    if name is not None:
        project.name = name
    if description is not None:
        project.description = description
    if data.get('members') is not None:
        member_ids = existing_user_ids(data['members'], 'Invalid member IDs')
        project.members = _members_with_creator(member_ids, project.created_by_id)
    db.session.commit()
    logger.info('Project %s updated by %s', project.id, current_user.id)
    return jsonify({'success': True, 'data': project.to_dict()})


@projects_bp.delete('/<project_id>')
@login_required
@project_access(creator_only=True, message='Only the project creator can delete this project')
def delete_project(project):
    result = db.session.execute(db.delete(Task).where(Task.project_id == project.id))
    deleted_tasks = result.rowcount
    db.session.delete(project)
    db.session.commit()
    logger.info('Project %s deleted with %d tasks', project.id, deleted_tasks)
    return jsonify({'success': True, 'data': {
        'message': 'Project deleted successfully',
        'deletedTasks': deleted_tasks,
    }})


@projects_bp.get('/<project_id>/tasks')
@login_required
@project_access()
def project_tasks(project):
    query = Task.query.filter_by(project_id=project.id)
    tasks = sort_and_filter(query, **list_params())
    return jsonify({'success': True, 'data': [t.to_dict() for t in tasks]})
