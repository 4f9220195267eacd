"""Field-by-date matrix over many submissions.

One row per field id seen in the submissions' forms, one column per calendar
day in the requested range. A cell lists every answer given that day as
``"<value> (<initials>)"``, one per line, in submission order.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Sequence, Union

from clinicforms.services.export_views import ExportSubmission, submitter_initials
from clinicforms.services.flatten import ExportRow
from clinicforms.services.form_schema import parse_schema_lenient

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        # naive values are UTC as stored
        return value.astimezone(timezone.utc).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def date_columns(start: DateLike, end: DateLike) -> List[str]:
    cols = []
    d, last = _as_date(start), _as_date(end)
    while d <= last:
        cols.append(d.isoformat())
        d += timedelta(days=1)
    return cols


def _format_value(value) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def pivot(submissions: Sequence[ExportSubmission], start_date: DateLike, end_date: DateLike) -> List[ExportRow]:
    if not submissions:
        return []
    columns = date_columns(start_date, end_date)

    labels: "OrderedDict[str, str]" = OrderedDict()
    descriptions: Dict[str, str] = {}
    for sub in submissions:
        schema = parse_schema_lenient(sub.form.fields_schema) if sub.form else None
        if schema is None:
            continue
        for field in schema.fields:
            labels.setdefault(field.id, field.display_label)
            if field.description and field.id not in descriptions:
                descriptions[field.id] = field.description

    by_day: Dict[str, List[ExportSubmission]] = {}
    for sub in submissions:
        by_day.setdefault(_as_date(sub.created_at).isoformat(), []).append(sub)

    rows = []
    for field_id, label in labels.items():
        desc = descriptions.get(field_id)
        row: ExportRow = {"Field": f"{label} - {desc}" if desc else label}
        for day in columns:
            entries = []
            for sub in by_day.get(day, []):
                value = (sub.submission_data or {}).get(field_id)
                if value is None or value == "" or value == []:
                    continue
                entries.append(f"{_format_value(value)} ({submitter_initials(sub.submitter)})")
            row[day] = "\n".join(entries)
        rows.append(row)
    logger.debug("Pivot built: %d fields x %d days from %d submissions", len(rows), len(columns), len(submissions))
    return rows
