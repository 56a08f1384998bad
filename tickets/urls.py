"""
tickets/urls.py
===============
URL patterns for the tickets app.
"""

from django.urls import path
from . import views

urlpatterns = [
    # ── Board (state lives in serviceFilter / serviceSort / adFilter / adSort)
    path("",             views.ticket_board, name="ticket_board"),

    # ── Signed AdOrbit proxy
    path("api",          views.ticket_api,   name="ticket_api"),

    # ── Exports (CSV / XLSX) of the board as currently filtered
    path("export/csv/",  views.export_csv,   name="export_csv"),
    path("export/xlsx/", views.export_xlsx,  name="export_xlsx"),
]
