import json
import logging
import pika

from registry.notifications.publisher import connection_parameters

logger = logging.getLogger(__name__)


class UndeliverableMessage(ValueError):
    """Raised by handlers for messages that can never be processed."""


class RabbitMQConsumer:
    """Blocking consumer for a single durable queue."""

    def __init__(self, queue_name: str):
        self.queue_name = queue_name
        self.connection = None
        self.channel = None

    def connect(self) -> bool:
        try:
            self.connection = pika.BlockingConnection(connection_parameters())
            self.channel = self.connection.channel()
            self.channel.queue_declare(queue=self.queue_name, durable=True)
            # One unacknowledged message at a time
            self.channel.basic_qos(prefetch_count=1)
            logger.info(f"RabbitMQ consumer initialized for queue: {self.queue_name}")
            return True
        except (pika.exceptions.AMQPError, OSError) as e:
            logger.error(f"Failed to initialize RabbitMQ consumer: {str(e)}")
            self.connection = None
            self.channel = None
            return False

    def consume(self, callback):
        """
        Block and dispatch messages to ``callback(ch, method, properties, body)``.

        Returns when the consumer is interrupted or the connection drops.
        """
        if not self.channel and not self.connect():
            return

        try:
            logger.info(f"Starting to consume from queue: {self.queue_name}")
            self.channel.basic_consume(
                queue=self.queue_name, on_message_callback=callback, auto_ack=False
            )
            self.channel.start_consuming()
        except KeyboardInterrupt:
            logger.info("Consumer interrupted by user")
        except pika.exceptions.AMQPError as e:
            logger.error(f"Error consuming messages: {str(e)}")
        finally:
            self.stop()

    def stop(self):
        try:
            if self.channel and self.channel.is_open:
                self.channel.stop_consuming()
            if self.connection and not self.connection.is_closed:
                self.connection.close()
                logger.info("RabbitMQ consumer stopped and connection closed")
        except pika.exceptions.AMQPError as e:
            logger.error(f"Error stopping consumer: {str(e)}")
        finally:
            self.connection = None
            self.channel = None


def create_message_handler(handler_func):
    """
    Wrap ``handler_func(message: dict)`` as a pika callback.

    Messages are acked on success. Undecodable or undeliverable messages are
    dropped; any other failure requeues the message for another attempt.
    """

    def callback(ch, method, properties, body):
        try:
            message = json.loads(body.decode("utf-8"))
            handler_func(message)
        except (json.JSONDecodeError, UnicodeDecodeError, UndeliverableMessage) as e:
            logger.error(f"Dropping message {method.delivery_tag}: {str(e)}")
            ch.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
        except Exception as e:
            logger.error(f"Error processing message {method.delivery_tag}, requeueing: {str(e)}")
            ch.basic_nack(delivery_tag=method.delivery_tag, requeue=True)
        else:
            ch.basic_ack(delivery_tag=method.delivery_tag)

    return callback
