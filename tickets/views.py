"""
tickets/views.py
================
Django views for the support ticket board.

  ticket_api    — GET /api, signed proxy to AdOrbit, returns active tickets
  ticket_board  — GET /, the two-column Service / Ad board
  export_csv    — GET /export/csv/, current board as CSV
  export_xlsx   — GET /export/xlsx/, current board as XLSX

All four fetch tickets through fetch_active_tickets(), which performs the
route lookup and the signed ticket query on every call.
"""

import csv
import io
import logging
from functools import wraps

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from django.shortcuts import render
from django.utils import timezone
from django.views.decorators.http import require_GET

from .adorbit import (
    AdOrbitClient,
    ConfigurationError,
    UpstreamError,
    fetch_active_tickets,
)
from .board import BoardQuery, build_board


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# HELPERS
# ---------------------------------------------------------------------------

def _fetch_active_tickets() -> list[dict]:
    client = AdOrbitClient.from_settings(settings)
    return fetch_active_tickets(client, timezone.localtime())


def _board_columns(request):
    query   = BoardQuery.from_params(request.GET)
    columns = build_board(
        _fetch_active_tickets(),
        query,
        today=timezone.localdate(),
        ticket_url=settings.ADORBIT_TICKET_URL,
        path=request.path,
    )
    return query, columns


def adorbit_errors(view_fn):
    """Render the error page instead of a traceback when AdOrbit fails."""
    @wraps(view_fn)
    def wrapper(request, *args, **kwargs):
        try:
            return view_fn(request, *args, **kwargs)
        except ConfigurationError as exc:
            logger.error("AdOrbit is not configured: %s", exc)
            status, message = 500, str(exc)
        except UpstreamError:
            logger.exception("AdOrbit request failed")
            status, message = 502, "Failed to fetch tickets"
        return render(request, "tickets/error.html", {
            "error":     message,
            "retry_url": request.get_full_path(),
        }, status=status)
    return wrapper


# ---------------------------------------------------------------------------
# PROXY ENDPOINT
# ---------------------------------------------------------------------------

@require_GET
def ticket_api(request):
    """JSON array of tickets whose status_name is not "Done"."""
    try:
        tickets = _fetch_active_tickets()
    except ConfigurationError as exc:
        logger.error("AdOrbit is not configured: %s", exc)
        return JsonResponse({"error": str(exc)}, status=500)
    except UpstreamError as exc:
        logger.exception("AdOrbit request failed")
        return JsonResponse({"error": str(exc)}, status=502)

    return JsonResponse(tickets, safe=False)


# ---------------------------------------------------------------------------
# BOARD
# ---------------------------------------------------------------------------

@require_GET
@adorbit_errors
def ticket_board(request):
    query, columns = _board_columns(request)
    return render(request, "tickets/board.html", {
        "columns":      columns,
        "query_string": query.urlencode(),
    })


# ---------------------------------------------------------------------------
# EXPORT REPORTS
# ---------------------------------------------------------------------------

EXPORT_COLUMNS = [
    ("group",      "Group"),
    ("number",     "Ticket #"),
    ("title",      "Subject"),
    ("status",     "Status"),
    ("customer",   "Customer"),
    ("assignee",   "Assigned To"),
    ("pub_name",   "Publication"),
    ("date_label", "Date"),
    ("bucket",     "Urgency"),
    ("url",        "Link"),
]


def _export_rows(columns):
    """Yield (card, row) pairs in board order."""
    for column in columns:
        for card in column.cards:
            yield card, [
                column.title,
                card.number,
                card.title,
                card.status,
                card.customer,
                card.assignee,
                card.pub_name,
                card.date_label,
                card.bucket_label,
                card.url,
            ]


@require_GET
@adorbit_errors
def export_csv(request):
    _, columns = _board_columns(request)

    response = HttpResponse(content_type="text/csv")
    response["Content-Disposition"] = 'attachment; filename="active_tickets.csv"'

    writer = csv.writer(response)
    writer.writerow([col[1] for col in EXPORT_COLUMNS])
    for _, row in _export_rows(columns):
        writer.writerow(row)

    return response


@require_GET
@adorbit_errors
def export_xlsx(request):
    from openpyxl import Workbook
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
    from openpyxl.utils import get_column_letter

    _, columns = _board_columns(request)

    wb = Workbook()
    ws = wb.active
    ws.title = "Active Tickets"

    # ── Colour palette
    INDIGO = "4F46E5"
    WHITE  = "FFFFFF"
    ZINC   = "F4F4F5"

    last_col = get_column_letter(len(EXPORT_COLUMNS))

    # ── Title row
    ws.merge_cells(f"A1:{last_col}1")
    title_cell = ws["A1"]
    title_cell.value = f"Active Support Tickets — {timezone.localtime():%b %d, %Y %H:%M}"
    title_cell.font      = Font(name="Calibri", bold=True, size=14, color=WHITE)
    title_cell.fill      = PatternFill("solid", fgColor=INDIGO)
    title_cell.alignment = Alignment(horizontal="center", vertical="center")
    ws.row_dimensions[1].height = 26

    # ── Header row
    header_font   = Font(name="Calibri", bold=True, size=10)
    header_fill   = PatternFill("solid", fgColor=ZINC)
    header_border = Border(bottom=Side(style="thin", color=INDIGO))

    for col_idx, (_, label) in enumerate(EXPORT_COLUMNS, start=1):
        cell = ws.cell(row=2, column=col_idx, value=label)
        cell.font      = header_font
        cell.fill      = header_fill
        cell.border    = header_border
        cell.alignment = Alignment(horizontal="center", vertical="center")

    # ── Data rows, urgency cell tinted per bucket
    urgency_col = [key for key, _ in EXPORT_COLUMNS].index("bucket") + 1

    for row_idx, (card, row_data) in enumerate(_export_rows(columns), start=3):
        for col_idx, value in enumerate(row_data, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)
        ws.cell(row=row_idx, column=urgency_col).fill = PatternFill(
            "solid", fgColor=card.fill_color
        )

    # ── Column widths
    col_widths = [16, 10, 44, 14, 24, 20, 24, 20, 12, 52]
    for i, w in enumerate(col_widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = w

    ws.freeze_panes = "A3"

    output = io.BytesIO()
    wb.save(output)

    response = HttpResponse(
        output.getvalue(),
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    response["Content-Disposition"] = 'attachment; filename="active_tickets.xlsx"'
    return response
