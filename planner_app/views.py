"""Board, Gantt, calendar and export views over a project's tasks."""
import calendar
import csv
import io
from datetime import date, datetime, timedelta

import matplotlib
matplotlib.use('Agg')  # Use non-GUI backend for server
import matplotlib.dates as mdates
import matplotlib.patches as mpatches
import matplotlib.pyplot as plt
from flask import Blueprint, Response, jsonify, make_response, request
from flask_login import login_required

from .access import project_access
from .db import TASK_STATUSES, Task, iso, utcnow
from .errors import ValidationError
from .listing import list_params, sort_and_filter

views_bp = Blueprint('views', __name__)

COLUMN_TITLES = {'todo': 'To Do', 'inProgress': 'In Progress', 'done': 'Done'}
STATUS_COLORS = {'todo': '#228be6', 'inProgress': '#fab005', 'done': '#40c057'}
CELL_WIDTH = 60
GANTT_DAY_OPTIONS = (7, 14, 30, 90)
DEFAULT_DAYS_TO_SHOW = 14
CSV_FIELDS = ['title', 'description', 'status', 'startDate', 'endDate', 'assignedTo', 'createdBy']


def _project_tasks(project):
    return Task.query.filter_by(project_id=project.id).order_by(Task.start_date, Task.created_at).all()


def _day(value):
    return value.date() if isinstance(value, datetime) else value


def build_board(tasks):
    columns = []
    for status in TASK_STATUSES:
        column_tasks = [t.to_dict() for t in tasks if t.status == status]
        columns.append({'status': status, 'title': COLUMN_TITLES[status], 'count': len(column_tasks), 'tasks': column_tasks})
    return columns


def date_bounds(tasks, today=None):
    """Earliest start and latest end over all tasks; a 30-day window from today if none."""
    if not tasks:
        today = today or utcnow().date()
        return today, today + timedelta(days=30)
    return min(_day(t.start_date) for t in tasks), max(_day(t.end_date) for t in tasks)


def task_grid_position(task, view_start, days):
    """1-based grid columns of the task bar clipped to the window, or None if outside it."""
    to_start = (_day(task.start_date) - view_start).days
    to_end = (_day(task.end_date) - view_start).days
    if to_start >= days or to_end < 0:
        return None
    visible_start = max(0, to_start)
    visible_end = min(days, to_end + 1)
    return {
        'gridColumnStart': visible_start + 1,
        'gridColumnEnd': visible_end + 1,
        'left': visible_start * CELL_WIDTH,
        'width': (visible_end - visible_start) * CELL_WIDTH,
        'clippedStart': to_start < 0,
        'clippedEnd': to_end + 1 > days,
    }


def now_marker(view_start, days, now=None):
    now = now or utcnow()
    window_start = datetime.combine(view_start, datetime.min.time())
    window_end = window_start + timedelta(days=days)
    if now < window_start or now >= window_end:
        return None
    return (now - window_start).total_seconds() / 86400 * CELL_WIDTH


def build_gantt(tasks, view_start=None, days=DEFAULT_DAYS_TO_SHOW, now=None):
    earliest, latest = date_bounds(tasks, today=_day(now) if now else None)
    view_start = view_start or (_day(now) if now else utcnow().date())
    rows = []
    for task in tasks:
        position = task_grid_position(task, view_start, days)
        if position is not None:
            rows.append({'task': task.to_dict(), 'color': STATUS_COLORS[task.status], **position})
    return {
        'viewStart': view_start.isoformat(),
        'daysToShow': days,
        'cellWidth': CELL_WIDTH,
        'dates': [(view_start + timedelta(days=i)).isoformat() for i in range(days)],
        'earliestStart': earliest.isoformat(),
        'latestEnd': latest.isoformat(),
        'nowOffset': now_marker(view_start, days, now),
        'rows': rows,
    }


def build_calendar(tasks, year, month):
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    in_month = [t for t in tasks if _day(t.start_date) <= last and _day(t.end_date) >= first]
    days = []
    current = first
    while current <= last:
        days.append({
            'date': current.isoformat(),
            'weekday': current.weekday(),
            'tasks': [
                {'id': t.id, 'title': t.title, 'status': t.status}
                for t in in_month if _day(t.start_date) <= current <= _day(t.end_date)
            ],
        })
        current += timedelta(days=1)
    return {'month': first.strftime('%Y-%m'), 'label': first.strftime('%B %Y'), 'days': days,
            'tasks': [t.to_dict() for t in in_month]}


def _ics_escape(text):
    return text.replace('\\', '\\\\').replace(';', '\\;').replace(',', '\\,').replace('\n', '\\n')


def build_ics(project, tasks):
    stamp = utcnow().strftime('%Y%m%dT%H%M%SZ')
    ics = [
        'BEGIN:VCALENDAR',
        'VERSION:2.0',
        'PRODID:-//Task Planner//EN',
        'CALSCALE:GREGORIAN',
        f'X-WR-CALNAME:{_ics_escape(project.name)}',
    ]
    for t in tasks:
        ics.append('BEGIN:VEVENT')
        ics.append(f'UID:{t.id}@task-planner')
        ics.append(f'DTSTAMP:{stamp}')
        ics.append(f'SUMMARY:{_ics_escape(t.title)}')
        ics.append(f'DTSTART;VALUE=DATE:{_day(t.start_date).strftime("%Y%m%d")}')
        # DTEND is exclusive for all-day events
        ics.append(f'DTEND;VALUE=DATE:{(_day(t.end_date) + timedelta(days=1)).strftime("%Y%m%d")}')
        if t.description:
            ics.append(f'DESCRIPTION:{_ics_escape(t.description)}')
        ics.append(f'STATUS:{"COMPLETED" if t.status == "done" else "NEEDS-ACTION"}')
        ics.append('END:VEVENT')
    ics.append('END:VCALENDAR')
    return '\r\n'.join(ics) + '\r\n'


def render_gantt_png(project, gantt):
    rows = gantt['rows']
    view_start = date.fromisoformat(gantt['viewStart'])
    days = gantt['daysToShow']
    fig, ax = plt.subplots(figsize=(max(8, days * 0.6), max(3, 1 + len(rows) * 0.5)))
    try:
        if not rows:
            ax.text(0.5, 0.5, 'No tasks to display', ha='center', va='center', fontsize=16, color='gray', transform=ax.transAxes)
            ax.set_xlabel('Date')
        else:
            for i, row in enumerate(rows):
                left = mdates.date2num(view_start + timedelta(days=row['gridColumnStart'] - 1))
                width = row['gridColumnEnd'] - row['gridColumnStart']
                ax.barh(i, width, left=left, height=0.5, align='center', color=row['color'], edgecolor='black')
            ax.set_yticks(range(len(rows)))
            ax.set_yticklabels([row['task']['title'] for row in rows])
            ax.invert_yaxis()
            ax.set_xlabel('Date')
        ax.set_xlim(mdates.date2num(view_start), mdates.date2num(view_start + timedelta(days=days)))
        ax.xaxis.set_major_locator(mdates.AutoDateLocator())
        ax.xaxis.set_major_formatter(mdates.DateFormatter('%Y-%m-%d'))
        if gantt['nowOffset'] is not None:
            ax.axvline(mdates.date2num(view_start) + gantt['nowOffset'] / CELL_WIDTH, color='red', lw=1.5, linestyle='dashed')
        ax.set_title(project.name)
        legend_items = [mpatches.Patch(color=STATUS_COLORS[s], label=COLUMN_TITLES[s]) for s in TASK_STATUSES]
        ax.legend(handles=legend_items, loc='upper left', bbox_to_anchor=(1.01, 1), frameon=True, title='Status')
        fig.autofmt_xdate()
        fig.tight_layout()
        buf = io.BytesIO()
        fig.savefig(buf, format='png')
    finally:
        plt.close(fig)
    return buf.getvalue()


def _gantt_args():
    days = request.args.get('days', DEFAULT_DAYS_TO_SHOW)
    try:
        days = int(days)
    except (TypeError, ValueError):
        days = None
    if days not in GANTT_DAY_OPTIONS:
        raise ValidationError('days must be one of: ' + ', '.join(str(d) for d in GANTT_DAY_OPTIONS))
    start = request.args.get('start')
    if start:
        try:
            start = date.fromisoformat(start)
        except ValueError:
            raise ValidationError('start must be a YYYY-MM-DD date') from None
        if start > date.max - timedelta(days=days):
            raise ValidationError('start is too far in the future')
    return start or None, days


@views_bp.get('/<project_id>/board')
@login_required
@project_access()
def board(project):
    return jsonify({'success': True, 'data': {'project': project.to_dict(), 'columns': build_board(_project_tasks(project))}})


@views_bp.get('/<project_id>/gantt')
@login_required
@project_access()
def gantt(project):
    start, days = _gantt_args()
    return jsonify({'success': True, 'data': build_gantt(_project_tasks(project), start, days)})


@views_bp.get('/<project_id>/gantt.png')
@login_required
@project_access()
def gantt_png(project):
    start, days = _gantt_args()
    png = render_gantt_png(project, build_gantt(_project_tasks(project), start, days))
    return Response(png, mimetype='image/png')


@views_bp.get('/<project_id>/calendar')
@login_required
@project_access()
def calendar_view(project):
    month = request.args.get('month') or utcnow().strftime('%Y-%m')
    try:
        first = datetime.strptime(month, '%Y-%m')
    except ValueError:
        raise ValidationError('month must be in YYYY-MM format') from None
    return jsonify({'success': True, 'data': build_calendar(_project_tasks(project), first.year, first.month)})


@views_bp.get('/<project_id>/calendar.ics')
@login_required
@project_access()
def calendar_export_ics(project):
    return Response(build_ics(project, _project_tasks(project)), mimetype='text/calendar', headers={
        'Content-Disposition': 'attachment; filename=project_tasks.ics'
    })


@views_bp.get('/<project_id>/tasks.csv')
@login_required
@project_access()
def download_csv(project):
    tasks = sort_and_filter(Task.query.filter_by(project_id=project.id), **list_params())
    si = io.StringIO()
    writer = csv.DictWriter(si, fieldnames=CSV_FIELDS)
    writer.writeheader()
    for t in tasks:
        writer.writerow({
            'title': t.title,
            'description': t.description,
            'status': t.status,
            'startDate': iso(t.start_date),
            'endDate': iso(t.end_date),
            'assignedTo': t.assigned_to.full_name if t.assigned_to else '',
            'createdBy': t.created_by.full_name if t.created_by else '',
        })
    output = make_response(si.getvalue())
    output.headers['Content-Disposition'] = 'attachment; filename=project_tasks.csv'
    output.headers['Content-type'] = 'text/csv'
    return output
