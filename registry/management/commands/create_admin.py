"""
Create an ADMIN account from the command line.

Usage:
    python manage.py create_admin --username admin --first-name Juan --last-name Reyes
"""

import getpass
from django.core.management.base import BaseCommand, CommandError

from registry.exceptions import PortalError
from registry.services.account_service import AccountService


class Command(BaseCommand):
    help = "Create an administrator account"

    def add_arguments(self, parser):
        parser.add_argument("--username", required=True)
        parser.add_argument("--first-name", required=True)
        parser.add_argument("--last-name", required=True)
        parser.add_argument("--password", help="Prompted for when omitted")
        parser.add_argument("--contact-no")
        parser.add_argument("--email")

    def handle(self, *args, **options):
        password = options["password"] or getpass.getpass("Password: ")
        data = {
            "username": options["username"],
            "password": password,
            "first_name": options["first_name"],
            "last_name": options["last_name"],
            "contact_no": options["contact_no"],
            "email": options["email"],
        }
        try:
            admin = AccountService().create_admin(data)
        except PortalError as e:
            raise CommandError(e.message) from e

        self.stdout.write(self.style.SUCCESS(f"Admin account '{admin.account.username}' created"))
