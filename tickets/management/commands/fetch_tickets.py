"""
tickets/management/commands/fetch_tickets.py
============================================
Runs the signed AdOrbit fetch from the command line. Handy for checking
credentials and the route map without starting the server.

Usage:
    python manage.py fetch_tickets           # per-column counts
    python manage.py fetch_tickets --json    # dump active tickets as JSON
    python manage.py fetch_tickets --routes  # print the route map only
"""

import json

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from tickets.adorbit import AdOrbitClient, AdOrbitError, fetch_active_tickets
from tickets.board import partition_tickets


class Command(BaseCommand):
    help = "Fetch active tickets from AdOrbit using the configured credentials."

    def add_arguments(self, parser):
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the active tickets as JSON instead of a summary.",
        )
        parser.add_argument(
            "--routes",
            action="store_true",
            help="Print the discovered route map and exit.",
        )

    def handle(self, *args, **options):
        try:
            client = AdOrbitClient.from_settings(settings)

            if options["routes"]:
                routes = client.fetch_routes()
                for name in sorted(routes):
                    self.stdout.write(f"  {name:<24} {routes[name]}")
                return

            tickets = fetch_active_tickets(client, timezone.localtime())
        except AdOrbitError as exc:
            raise CommandError(str(exc)) from exc

        if options["json"]:
            self.stdout.write(json.dumps(tickets, indent=2))
            return

        groups = partition_tickets(tickets)
        self.stdout.write(self.style.SUCCESS(f"  Active tickets: {len(tickets)}"))
        self.stdout.write(f"  Service:        {len(groups['service'])}")
        self.stdout.write(f"  Ad:             {len(groups['ad'])}")
