"""Filtering and sorting for the task list view."""
from flask import request

from .db import TASK_STATUSES, Task, db
from .errors import ValidationError
from .validation import parse_status

SORT_KEYS = {
    'title': lambda t: t.title.lower(),
    'status': lambda t: t.status,
    'startDate': lambda t: t.start_date,
    'endDate': lambda t: t.end_date,
    'assignedTo': lambda t: (t.assigned_to.full_name.lower() if t.assigned_to else ''),
}


def list_params():
    args = request.args
    status = args.get('status', 'all')
    if status != 'all':
        status = parse_status(status)
    sort = args.get('sort') or None
    if sort is not None and sort not in SORT_KEYS:
        raise ValidationError('sort must be one of: ' + ', '.join(SORT_KEYS))
    order = args.get('order', 'asc')
    if order not in ('asc', 'desc'):
        raise ValidationError("order must be 'asc' or 'desc'")
    return {'status': status, 'search': args.get('search', '').strip(), 'sort': sort, 'order': order}


def sort_and_filter(query, status='all', search='', sort=None, order='asc'):
    """Apply the list view's status filter, text search and column sort.

    Without a sort column tasks come back newest first.
    """
    if status in TASK_STATUSES:
        query = query.filter(Task.status == status)
    if search:
        # % and _ in the search text match literally
        escaped = search.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
        pattern = f'%{escaped}%'
        query = query.filter(db.or_(
            Task.title.ilike(pattern, escape='\\'),
            Task.description.ilike(pattern, escape='\\'),
        ))
    tasks = query.order_by(Task.created_at.desc()).all()
    if sort:
        tasks.sort(key=SORT_KEYS[sort], reverse=(order == 'desc'))
    return tasks
