"""
support_board/urls.py
=====================
Root URL configuration. Everything is served by the tickets app.
"""

from django.urls import include, path

urlpatterns = [
    path("", include("tickets.urls")),
]
