"""
tickets/adorbit.py
==================
Signed client for the AdOrbit ticketing API.

This module is kept INDEPENDENT of Django. It reads its configuration from
any object exposing the settings attributes below, so it can be unit-tested
in isolation or driven from a management command.

Request signing
---------------
    message   = METHOD + "\\n" + URL
    digest    = HMAC-SHA512(message, API_KEY) rendered as hex text
    signature = base64(utf8(digest))
    header    = "Authorization: ADORBIT <PUBLIC_KEY>:<signature>"

The hex-then-base64 step matches what the upstream service verifies against;
do not collapse it into a plain base64 of the raw digest.

Fetch sequence
--------------
    1. GET API_BASE_URL + "/"            -> route map {"tickets": url, ...}
    2. GET routes["tickets"]             -> list of tickets
       with X-OPT-CHANGEDSINCE = now - 3 months ("YYYY-MM-DD HH:MM:SS")
    3. drop tickets whose status_name is "Done"

Routes are never cached: every call to fetch_active_tickets() performs
both upstream requests.

Public API
----------
    client  = AdOrbitClient.from_settings(settings)
    tickets = fetch_active_tickets(client, now)
"""

import base64
import hashlib
import hmac
import logging
from datetime import datetime
from typing import Any, Optional

import requests
from dateutil.relativedelta import relativedelta


logger = logging.getLogger(__name__)


DEFAULT_BASE_URL       = "https://api.adorbit.com"
DEFAULT_AUTH_SCHEME    = "ADORBIT"
DEFAULT_TIMEOUT        = 30.0
DEFAULT_CHANGED_MONTHS = 3

TICKETS_ROUTE       = "tickets"
CHANGED_SINCE_HDR   = "X-OPT-CHANGEDSINCE"
CHANGED_SINCE_FMT   = "%Y-%m-%d %H:%M:%S"
DONE_STATUS         = "Done"


# ---------------------------------------------------------------------------
# ERRORS
# ---------------------------------------------------------------------------

class AdOrbitError(Exception):
    """Base class for everything this module raises."""


class ConfigurationError(AdOrbitError):
    """Required credentials are missing from the environment."""


class UpstreamError(AdOrbitError):
    """An upstream call failed or returned something we cannot use."""


# ---------------------------------------------------------------------------
# SIGNING
# ---------------------------------------------------------------------------

def sign_request(method: str, url: str, secret: str) -> str:
    """Return the base64 signature for `method` + `url`."""
    message = f"{method.upper()}\n{url}"
    digest  = hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha512
    ).hexdigest()
    return base64.b64encode(digest.encode("utf-8")).decode("ascii")


def authorization_header(
    method: str,
    url: str,
    secret: str,
    public_key: str,
    scheme: str = DEFAULT_AUTH_SCHEME,
) -> str:
    return f"{scheme} {public_key}:{sign_request(method, url, secret)}"


def changed_since(now: datetime, months: int = DEFAULT_CHANGED_MONTHS) -> str:
    """
    Format the X-OPT-CHANGEDSINCE value: `now` minus `months`, in the
    caller's local time. Month ends clamp (May 31 - 3 months = Feb 28/29).
    """
    return (now - relativedelta(months=months)).strftime(CHANGED_SINCE_FMT)


def filter_active(tickets: list[dict]) -> list[dict]:
    return [t for t in tickets if t.get("status_name") != DONE_STATUS]


# ---------------------------------------------------------------------------
# CLIENT
# ---------------------------------------------------------------------------

class AdOrbitClient:
    """
    Thin signed HTTP client. One instance per inbound request is fine;
    it holds no state beyond its configuration.
    """

    def __init__(
        self,
        api_key: str,
        public_key: str,
        base_url: str = DEFAULT_BASE_URL,
        scheme: str = DEFAULT_AUTH_SCHEME,
        timeout: float = DEFAULT_TIMEOUT,
        changed_months: int = DEFAULT_CHANGED_MONTHS,
    ):
        self.api_key        = api_key
        self.public_key     = public_key
        self.base_url       = base_url.rstrip("/")
        self.scheme         = scheme
        self.timeout        = timeout
        self.changed_months = changed_months

    @classmethod
    def from_settings(cls, settings) -> "AdOrbitClient":
        """
        Build a client from a settings object (Django settings or any object
        with the same attribute names). Raises ConfigurationError when
        API_KEY or PUBLIC_KEY is unset.
        """
        api_key    = getattr(settings, "API_KEY", "")
        public_key = getattr(settings, "PUBLIC_KEY", "")

        missing = [
            name for name, value in (("API_KEY", api_key), ("PUBLIC_KEY", public_key))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"{' and '.join(missing)} must be set in the environment."
            )

        return cls(
            api_key=api_key,
            public_key=public_key,
            base_url=getattr(settings, "API_BASE_URL", "") or DEFAULT_BASE_URL,
            scheme=getattr(settings, "ADORBIT_AUTH_SCHEME", DEFAULT_AUTH_SCHEME),
            timeout=getattr(settings, "ADORBIT_TIMEOUT", DEFAULT_TIMEOUT),
            changed_months=getattr(
                settings, "ADORBIT_CHANGED_SINCE_MONTHS", DEFAULT_CHANGED_MONTHS
            ),
        )

    def signed_headers(self, method: str, url: str,
                       extra: Optional[dict] = None) -> dict:
        headers = {
            "Authorization": authorization_header(
                method, url, self.api_key, self.public_key, self.scheme
            ),
            "Accept": "application/json",
            "Method": method.upper(),
        }
        if extra:
            headers.update(extra)
        return headers

    def request(self, url: str, method: str = "GET",
                headers: Optional[dict] = None) -> Any:
        """Issue one signed request and return the decoded JSON body."""
        logger.debug("AdOrbit %s %s", method.upper(), url)
        try:
            response = requests.request(
                method.upper(),
                url,
                headers=self.signed_headers(method, url, headers),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise UpstreamError(f"{method.upper()} {url} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"{method.upper()} {url} did not return JSON") from exc

    def fetch_routes(self) -> dict:
        routes = self.request(self.base_url + "/")
        if not isinstance(routes, dict):
            raise UpstreamError("Route map is not a JSON object.")
        return routes

    def fetch_tickets(self, route: str, now: datetime) -> list[dict]:
        tickets = self.request(
            route,
            headers={CHANGED_SINCE_HDR: changed_since(now, self.changed_months)},
        )
        if not isinstance(tickets, list):
            raise UpstreamError("Ticket route did not return a JSON array.")
        return tickets


def fetch_active_tickets(client: AdOrbitClient, now: datetime) -> list[dict]:
    """
    Discover the tickets route, fetch recently changed tickets and drop
    the completed ones. Any upstream failure raises UpstreamError.
    """
    routes = client.fetch_routes()
    route  = routes.get(TICKETS_ROUTE)
    if not route:
        raise UpstreamError(f"Route map has no '{TICKETS_ROUTE}' entry.")

    tickets = client.fetch_tickets(route, now)
    active  = filter_active(tickets)
    logger.info("Fetched %d tickets, %d active", len(tickets), len(active))
    return active
