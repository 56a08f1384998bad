"""
Shared fixtures.

`upstream` replaces requests.request inside tickets.adorbit with a
recorder that serves canned JSON per URL, so no test touches the network.
"""

import pytest
import requests


BASE_URL    = "https://api.example.test"
TICKETS_URL = "https://api.example.test/v1/tickets"


class FakeResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.status_code  = status_code
        self._payload     = payload
        self._invalid     = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)

    def json(self):
        if self._invalid:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeUpstream:
    def __init__(self):
        self.responses = {}
        self.calls     = []

    def add(self, url, payload=None, status_code=200, invalid_json=False):
        self.responses[url] = FakeResponse(payload, status_code, invalid_json)

    def fail(self, url, exc):
        self.responses[url] = exc

    def __call__(self, method, url, headers=None, timeout=None, **kwargs):
        self.calls.append({
            "method":  method,
            "url":     url,
            "headers": headers or {},
            "timeout": timeout,
        })
        response = self.responses.get(url)
        if response is None:
            raise requests.ConnectionError(f"No route to {url}")
        if isinstance(response, Exception):
            raise response
        return response


SAMPLE_TICKETS = [
    {
        "id": 101, "ticket_number": "T-101", "type": "Service Request",
        "status_name": "Open", "subject": "Update billing contact",
        "assigned_to_user": "alice", "customer_name": "Acme Dental",
        "pub_name": "Valley News", "due_date": "2024-06-20",
        "delivery_date": "", "last_updated": "2024-06-01 10:00:00",
    },
    {
        "id": 102, "ticket_number": "T-102", "type": "Print Ad",
        "status_name": "In Progress", "subject": "Half page, colour",
        "assigned_to_user": "bob", "customer_name": "Riverside Motors",
        "pub_name": "Metro Weekly", "due_date": "0000-00-00",
        "delivery_date": "2024-06-12", "last_updated": "2024-06-03 08:30:00",
    },
    {
        "id": 103, "ticket_number": "T-103", "type": "Service Ad",
        "status_name": "Open", "subject": "Resize web banner",
        "assigned_to_user": "alice", "customer_name": "Hilltop Cafe",
        "pub_name": "Coastal Times", "due_date": "2024-06-05",
        "delivery_date": "", "last_updated": "2024-05-28 16:45:00",
    },
    {
        "id": 104, "ticket_number": "", "type": "Printing",
        "status_name": "Done", "subject": "",
        "description": "Reprint flyers", "assigned_to_user": "",
        "pub_name": "", "due_date": "", "delivery_date": "",
    },
]


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeUpstream()
    monkeypatch.setattr("tickets.adorbit.requests.request", fake)
    return fake


@pytest.fixture
def adorbit_settings(settings):
    settings.API_BASE_URL = BASE_URL
    settings.API_KEY      = "test-secret"
    settings.PUBLIC_KEY   = "test-public"
    settings.ADORBIT_TIMEOUT = 5.0
    return settings


@pytest.fixture
def routes(upstream, adorbit_settings):
    upstream.add(BASE_URL + "/", {"tickets": TICKETS_URL, "ad-ticket": BASE_URL + "/v1/ad-ticket/{id}"})
    return upstream


@pytest.fixture
def sample_tickets():
    return [dict(t) for t in SAMPLE_TICKETS]
