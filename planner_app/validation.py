"""Request payload validation helpers."""
import re
from datetime import datetime, UTC

from flask import request

from .db import TASK_STATUSES, User, db
from .errors import ValidationError

ID_PATTERN = re.compile(r'^[0-9a-f]{32}$')
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

STATUS_ALIASES = {'in-progress': 'inProgress', 'in_progress': 'inProgress'}

# Fields a client may change on an existing task, mapped to model attributes.
TASK_UPDATE_FIELDS = {
    'title': 'title',
    'description': 'description',
    'status': 'status',
    'startDate': 'start_date',
    'endDate': 'end_date',
    'assignedTo': 'assigned_to_id',
}


def json_body():
    data = request.get_json(force=True, silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def validate_email(email):
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email.strip()))


def is_valid_id(value):
    return isinstance(value, str) and bool(ID_PATTERN.match(value))


def require_id(value, label):
    if not is_valid_id(value):
        raise ValidationError(f'Invalid {label} ID')
    return value


def require_text(data, field, message, min_len=1):
    value = data.get(field)
    if not isinstance(value, str) or len(value.strip()) < min_len:
        raise ValidationError(message)
    return value.strip()


def optional_text(data, field, message):
    """Return the trimmed value, or None when the field is absent.

    A field that is present but blank is rejected.
    """
    if field not in data or data[field] is None:
        return None
    value = data[field]
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def parse_status(value):
    status = STATUS_ALIASES.get(value, value) if isinstance(value, str) else None
    if status not in TASK_STATUSES:
        raise ValidationError('Status must be one of: ' + ', '.join(TASK_STATUSES))
    return status


def parse_date(value, field):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{field} must be an ISO 8601 date')
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f'{field} must be an ISO 8601 date') from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def check_date_range(start, end):
    if start > end:
        raise ValidationError('startDate must be on or before endDate')


def existing_user_ids(ids, message):
    """Validate a list of user ids and return them de-duplicated, order kept."""
    if not isinstance(ids, list) or not all(is_valid_id(i) for i in ids):
        raise ValidationError(message)
    unique = list(dict.fromkeys(ids))
    if unique:
        found = {u.id for u in User.query.filter(User.id.in_(unique)).all()}
        if len(found) != len(unique):
            raise ValidationError(message)
    return unique


def existing_user(user_id, message='Invalid assignee'):
    if not is_valid_id(user_id):
        raise ValidationError(message)
    user = db.session.get(User, user_id)
    if not user:
        raise ValidationError(message)
    return user


def task_changes(data):
    """Validate an update payload against the task field allow-list.

    Returns a dict of model attribute -> parsed value.
    """
    if not isinstance(data, dict) or not data:
        raise ValidationError('No fields to update')
    unknown = sorted(k for k in data if k not in TASK_UPDATE_FIELDS)
    if unknown:
        raise ValidationError('Fields cannot be updated: ' + ', '.join(unknown))
    changes = {}
    if 'title' in data:
        changes['title'] = require_text(data, 'title', 'Title cannot be empty')
    if 'description' in data:
        desc = data['description']
        if desc is not None and not isinstance(desc, str):
            raise ValidationError('Description must be a string')
        changes['description'] = (desc or '').strip()
    if 'status' in data:
        changes['status'] = parse_status(data['status'])
    if 'startDate' in data:
        changes['start_date'] = parse_date(data['startDate'], 'startDate')
    if 'endDate' in data:
        changes['end_date'] = parse_date(data['endDate'], 'endDate')
    if 'assignedTo' in data:
        changes['assigned_to_id'] = existing_user(data['assignedTo']).id
    return changes


def check_task_changes(task, changes):
    """Validate the date range a task would have after applying changes."""
    start = changes.get('start_date', task.start_date)
    end = changes.get('end_date', task.end_date)
    check_date_range(start, end)
