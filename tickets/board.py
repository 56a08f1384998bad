"""
tickets/board.py
================
Board logic for the Active Support Tickets page.

Like adorbit.py, this module has no Django imports. It takes the list of
ticket dicts returned by the proxy and turns it into two display columns.

Pipeline
--------
1  Order      The whole list is sorted by effective due date once.

2  Partition  "service" = type contains "service" (case-insensitive).
              "ad"      = type contains "ad" OR does not contain "service".
              A "Service Ad" ticket is therefore in both columns, and a
              ticket with no type (or e.g. "Printing") only in "ad".

3  Filter     Per column: "all" or an exact assigned_to_user match.

4  Sort       Per column: due_date (asc), pub_name (asc), last_updated (desc).

5  Render     Each ticket becomes a TicketCard with a status bucket:
              past-due / due-today / due-soon / safe / unknown.

The four filter/sort selections live in a BoardQuery, which serializes
to and from URL query parameters. Default values are never written.

Public API
----------
    query   = BoardQuery.from_params(request.GET)
    columns = build_board(tickets, query, today=date.today())
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional
from urllib.parse import urlencode

from dateutil import parser as date_parser


logger = logging.getLogger(__name__)


SENTINEL_DATE     = "0000-00-00"
MAX_SAFE_INTEGER  = 2 ** 53 - 1     # effective time of an unparseable date
DUE_SOON_DAYS     = 10
PARSE_DEFAULT     = datetime(2001, 1, 1)    # fills parts a lenient date leaves out
DEFAULT_TICKET_URL = "https://evergreenmedia.adorbit.com/tickets/ticket/?id={id}"


# ---------------------------------------------------------------------------
# FILTER / SORT CHOICES
# ---------------------------------------------------------------------------

FILTER_ALL = "all"


class SortMode:
    DUE_DATE     = "due_date"
    PUB_NAME     = "pub_name"
    LAST_UPDATED = "last_updated"


SORT_CHOICES: list[tuple[str, str]] = [
    (SortMode.DUE_DATE,     "Due date"),
    (SortMode.PUB_NAME,     "Publication"),
    (SortMode.LAST_UPDATED, "Last updated"),
]

DEFAULT_FILTER = FILTER_ALL
DEFAULT_SORT   = SortMode.DUE_DATE


# ---------------------------------------------------------------------------
# STATUS BUCKETS
# ---------------------------------------------------------------------------

class StatusBucket:
    PAST_DUE  = "past-due"
    DUE_TODAY = "due-today"
    DUE_SOON  = "due-soon"
    SAFE      = "safe"
    UNKNOWN   = "unknown"


# Display metadata per bucket: label, badge CSS class, export fill colour.
BUCKET_META: dict[str, dict[str, str]] = {
    StatusBucket.PAST_DUE:  {"label": "Past due",  "badge": "badge-past-due",  "fill": "FEE2E2"},
    StatusBucket.DUE_TODAY: {"label": "Due today", "badge": "badge-due-today", "fill": "FFEDD5"},
    StatusBucket.DUE_SOON:  {"label": "Due soon",  "badge": "badge-due-soon",  "fill": "FEF9C3"},
    StatusBucket.SAFE:      {"label": "Safe",      "badge": "badge-safe",      "fill": "DCFCE7"},
    StatusBucket.UNKNOWN:   {"label": "No date",   "badge": "badge-unknown",   "fill": "F3F4F6"},
}


# ---------------------------------------------------------------------------
# DATE RESOLUTION
# ---------------------------------------------------------------------------

def uses_due_date(ticket: Mapping) -> bool:
    due = ticket.get("due_date")
    return bool(due) and due != SENTINEL_DATE


def effective_date_string(ticket: Mapping) -> Optional[str]:
    """due_date unless empty or the 0000-00-00 sentinel, else delivery_date."""
    if uses_due_date(ticket):
        return ticket["due_date"]
    return ticket.get("delivery_date") or None


def parse_ticket_date(value) -> Optional[datetime]:
    """
    Strict ISO-8601 first, then dateutil's lenient parser.
    Returns naive local time, or None when neither parser accepts `value`.
    """
    if not value:
        return None
    text = str(value)
    try:
        parsed = date_parser.isoparse(text)
    except (ValueError, OverflowError):
        try:
            parsed = date_parser.parse(text, default=PARSE_DEFAULT)
        except (ValueError, OverflowError):
            return None

    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone().replace(tzinfo=None)
        except (OverflowError, ValueError):
            return None
    return parsed


def effective_date(ticket: Mapping) -> Optional[datetime]:
    return parse_ticket_date(effective_date_string(ticket))


def _timestamp(value: Optional[datetime], default: float) -> float:
    if value is None:
        return default
    try:
        return value.timestamp()
    except (OverflowError, OSError, ValueError):
        return default


# ---------------------------------------------------------------------------
# PARTITION
# ---------------------------------------------------------------------------

def _type_of(ticket: Mapping) -> str:
    return (ticket.get("type") or "").lower()


def is_service_ticket(ticket: Mapping) -> bool:
    return "service" in _type_of(ticket)


def is_ad_ticket(ticket: Mapping) -> bool:
    ticket_type = _type_of(ticket)
    return "ad" in ticket_type or "service" not in ticket_type


def partition_tickets(tickets: Iterable[Mapping]) -> dict[str, list]:
    """Split into {"service": [...], "ad": [...]}; input order is kept."""
    tickets = list(tickets)
    return {
        "service": [t for t in tickets if is_service_ticket(t)],
        "ad":      [t for t in tickets if is_ad_ticket(t)],
    }


# ---------------------------------------------------------------------------
# FILTER & SORT
# ---------------------------------------------------------------------------

def filter_tickets(tickets: Iterable[Mapping], assignee: str) -> list:
    if assignee == FILTER_ALL:
        return list(tickets)
    return [t for t in tickets if t.get("assigned_to_user") == assignee]


def due_date_sort_key(ticket: Mapping) -> tuple:
    # Undated tickets go last and tie with each other; unparseable dates
    # sort after every real date but ahead of the undated ones.
    date_str = effective_date_string(ticket)
    if not date_str:
        return (1, 0)
    return (0, _timestamp(parse_ticket_date(date_str), MAX_SAFE_INTEGER))


def pub_name_sort_key(ticket: Mapping) -> tuple:
    name = ticket.get("pub_name") or ""
    return (name.casefold(), name)


def last_updated_sort_key(ticket: Mapping) -> float:
    return _timestamp(parse_ticket_date(ticket.get("last_updated")), 0)


def sort_tickets(tickets: Iterable[Mapping], mode: str) -> list:
    """
    Return a new, stably sorted list. Unknown modes sort by due date.
    """
    if mode == SortMode.PUB_NAME:
        return sorted(tickets, key=pub_name_sort_key)
    if mode == SortMode.LAST_UPDATED:
        return sorted(tickets, key=last_updated_sort_key, reverse=True)
    return sorted(tickets, key=due_date_sort_key)


def assignee_options(tickets: Iterable[Mapping], selected: str = FILTER_ALL) -> list[str]:
    """FILTER_ALL followed by every distinct assignee, sorted."""
    names = {t.get("assigned_to_user") for t in tickets}
    if selected != FILTER_ALL:
        names.add(selected)
    names.discard(None)
    names.discard("")
    return [FILTER_ALL] + sorted(names, key=lambda n: (n.casefold(), n))


# ---------------------------------------------------------------------------
# STATUS & LABELS
# ---------------------------------------------------------------------------

def status_bucket(ticket: Mapping, today: date) -> str:
    resolved = effective_date(ticket)
    if resolved is None:
        return StatusBucket.UNKNOWN

    day = resolved.date()
    if day < today:
        return StatusBucket.PAST_DUE
    if day == today:
        return StatusBucket.DUE_TODAY
    if day <= today + timedelta(days=DUE_SOON_DAYS):
        return StatusBucket.DUE_SOON
    return StatusBucket.SAFE


def date_label(ticket: Mapping) -> str:
    date_str = effective_date_string(ticket)
    if not date_str:
        return "No date set"

    resolved = parse_ticket_date(date_str)
    if resolved is None:
        logger.warning("Invalid date on ticket %s: %r", ticket.get("id"), date_str)
        return "Invalid date"

    label = "Due" if uses_due_date(ticket) else "Delivery"
    return f"{label}: {resolved:%b} {resolved.day}, {resolved.year}"


# ---------------------------------------------------------------------------
# QUERY STATE
# ---------------------------------------------------------------------------

# dataclass field -> URL parameter
QUERY_PARAMS: dict[str, str] = {
    "service_filter": "serviceFilter",
    "service_sort":   "serviceSort",
    "ad_filter":      "adFilter",
    "ad_sort":        "adSort",
}


@dataclass(frozen=True)
class BoardQuery:
    """
    The four independent board selections. Serializes to URL parameters
    with defaults omitted, so from_params(q.to_params()) == q for any q.
    """
    service_filter: str = DEFAULT_FILTER
    service_sort:   str = DEFAULT_SORT
    ad_filter:      str = DEFAULT_FILTER
    ad_sort:        str = DEFAULT_SORT

    @classmethod
    def from_params(cls, params: Mapping) -> "BoardQuery":
        values = {}
        for name, param in QUERY_PARAMS.items():
            value = params.get(param)
            if value:
                values[name] = value
        return cls(**values)

    def to_params(self) -> dict[str, str]:
        params = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value != f.default:
                params[QUERY_PARAMS[f.name]] = value
        return params

    def replace(self, **changes) -> "BoardQuery":
        return dataclasses.replace(self, **changes)

    def urlencode(self) -> str:
        return urlencode(self.to_params())

    def url(self, path: str = "/") -> str:
        query = self.urlencode()
        return f"{path}?{query}" if query else path


# ---------------------------------------------------------------------------
# DISPLAY OBJECTS
# ---------------------------------------------------------------------------

@dataclass
class TicketCard:
    """One rendered ticket row."""
    id:          str
    number:      str
    title:       str
    status:      str
    customer:    str
    assignee:    str
    pub_name:    str
    date_label:  str
    bucket:      str
    url:         str

    @property
    def badge_class(self) -> str:
        return BUCKET_META[self.bucket]["badge"]

    @property
    def bucket_label(self) -> str:
        return BUCKET_META[self.bucket]["label"]

    @property
    def fill_color(self) -> str:
        return BUCKET_META[self.bucket]["fill"]

    @classmethod
    def from_ticket(cls, ticket: Mapping, today: date,
                    ticket_url: str = DEFAULT_TICKET_URL) -> "TicketCard":
        ticket_id = str(ticket.get("id") or "")
        return cls(
            id=ticket_id,
            number=str(ticket.get("ticket_number") or ticket_id),
            title=ticket.get("subject") or ticket.get("description") or "",
            status=ticket.get("status_name") or "",
            customer=ticket.get("customer_name") or "",
            assignee=ticket.get("assigned_to_user") or "Unassigned",
            pub_name=ticket.get("pub_name") or "",
            date_label=date_label(ticket),
            bucket=status_bucket(ticket, today),
            url=ticket_url.format(id=ticket_id),
        )


@dataclass
class BoardOption:
    value:    str
    label:    str
    url:      str
    selected: bool = False


@dataclass
class BoardColumn:
    key:            str
    title:          str
    cards:          list[TicketCard]
    filter:         str
    sort:           str
    filter_options: list[BoardOption] = field(default_factory=list)
    sort_options:   list[BoardOption] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.cards)

    @property
    def empty_message(self) -> str:
        return f"No {self.title.lower()} found."


# key, title, filter field, sort field
COLUMNS: list[tuple[str, str, str, str]] = [
    ("service", "Service Tickets", "service_filter", "service_sort"),
    ("ad",      "Ad Tickets",      "ad_filter",      "ad_sort"),
]


def build_board(
    tickets: Iterable[Mapping],
    query: BoardQuery,
    today: date,
    ticket_url: str = DEFAULT_TICKET_URL,
    path: str = "/",
) -> list[BoardColumn]:
    """Partition, filter and sort `tickets` into the two board columns."""
    groups = partition_tickets(sort_tickets(tickets, SortMode.DUE_DATE))
    columns = []

    for key, title, filter_field, sort_field in COLUMNS:
        group    = groups[key]
        selected = getattr(query, filter_field)
        sort     = getattr(query, sort_field)

        visible = sort_tickets(filter_tickets(group, selected), sort)

        filter_options = [
            BoardOption(
                value=name,
                label="All assignees" if name == FILTER_ALL else name,
                url=query.replace(**{filter_field: name}).url(path),
                selected=(name == selected),
            )
            for name in assignee_options(group, selected)
        ]
        sort_options = [
            BoardOption(
                value=mode,
                label=label,
                url=query.replace(**{sort_field: mode}).url(path),
                selected=(mode == sort),
            )
            for mode, label in SORT_CHOICES
        ]

        columns.append(BoardColumn(
            key=key,
            title=title,
            cards=[TicketCard.from_ticket(t, today, ticket_url) for t in visible],
            filter=selected,
            sort=sort,
            filter_options=filter_options,
            sort_options=sort_options,
        ))

    return columns
