"""
Django management command to run the notification consumer.

Consumes notification.requested messages published by the web process and
delivers them by email.

Usage:
    python manage.py run_notification_consumer
"""

from django.conf import settings
from django.core.management.base import BaseCommand

from registry.notifications.consumer import RabbitMQConsumer, create_message_handler
from registry.notifications.handlers import handle_notification_requested


class Command(BaseCommand):
    help = "Run RabbitMQ consumer for notification.requested messages"

    def add_arguments(self, parser):
        parser.add_argument(
            "--queue",
            default=settings.RABBITMQ_NOTIFICATION_QUEUE,
            help="Queue to consume from",
        )

    def handle(self, *args, **options):
        queue_name = options["queue"]
        self.stdout.write(
            self.style.SUCCESS(
                f"Starting notification consumer on '{queue_name}' "
                f"({settings.RABBITMQ_HOST}:{settings.RABBITMQ_PORT})"
            )
        )
        consumer = RabbitMQConsumer(queue_name)
        consumer.consume(create_message_handler(handle_notification_requested))
        self.stdout.write("Notification consumer stopped")
