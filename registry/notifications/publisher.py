import json
import logging
import pika
from django.conf import settings

logger = logging.getLogger(__name__)


def connection_parameters() -> pika.ConnectionParameters:
    """Build RabbitMQ connection parameters from settings."""
    credentials = pika.PlainCredentials(settings.RABBITMQ_USER, settings.RABBITMQ_PASSWORD)
    return pika.ConnectionParameters(
        host=settings.RABBITMQ_HOST,
        port=settings.RABBITMQ_PORT,
        virtual_host=settings.RABBITMQ_VHOST,
        credentials=credentials,
        connection_attempts=1,
        socket_timeout=settings.RABBITMQ_SOCKET_TIMEOUT,
        blocked_connection_timeout=settings.RABBITMQ_SOCKET_TIMEOUT,
    )


class RabbitMQPublisher:
    """
    Short-lived publisher bound to a single durable queue.

    Use as a context manager so the connection is closed once the message
    has been handed to the broker:

        with RabbitMQPublisher("notification.requested") as publisher:
            publisher.publish({"event": "registration.approved", "payload": {...}})
    """

    def __init__(self, queue_name: str):
        self.queue_name = queue_name
        self.connection = None
        self.channel = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def connect(self) -> bool:
        """Open the connection and declare the queue. Returns False if the broker is unreachable."""
        try:
            self.connection = pika.BlockingConnection(connection_parameters())
            self.channel = self.connection.channel()
            self.channel.queue_declare(queue=self.queue_name, durable=True)
            logger.info(f"RabbitMQ publisher connected to queue {self.queue_name}")
            return True
        except (pika.exceptions.AMQPError, OSError) as e:
            logger.error(f"Failed to connect RabbitMQ publisher: {str(e)}")
            self.connection = None
            self.channel = None
            return False

    def publish(self, message: dict) -> bool:
        """
        Publish a persistent JSON message to the bound queue.

        Args:
            message: JSON-serialisable message body

        Returns:
            bool: True if the broker accepted the message, False otherwise
        """
        if not self.channel:
            logger.error(f"RabbitMQ channel for {self.queue_name} not initialized")
            return False

        try:
            self.channel.basic_publish(
                exchange="",
                routing_key=self.queue_name,
                body=json.dumps(message),
                properties=pika.BasicProperties(
                    delivery_mode=2, content_type="application/json"  # persistent
                ),
            )
            logger.info(f"Published {message.get('event', 'message')} to {self.queue_name}")
            return True
        except (pika.exceptions.AMQPError, OSError, TypeError) as e:
            logger.error(f"Failed to publish to {self.queue_name}: {str(e)}")
            self.close()
            return False

    def close(self):
        try:
            if self.connection and not self.connection.is_closed:
                self.connection.close()
        except pika.exceptions.AMQPError as e:
            logger.warning(f"Error closing RabbitMQ connection: {str(e)}")
        finally:
            self.connection = None
            self.channel = None
