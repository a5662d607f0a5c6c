"""
Structured logging for the Polynuts gateway.

Every record under the ``polynuts`` logger tree carries the component that
emitted it; transport records add the API surface (clob or data) and order
records add the lifecycle event, so a log pipeline can filter on either.
"""

import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

ROOT_LOGGER = "polynuts"

PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class GatewayJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping gateway context onto each record."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = self.formatTime(record, self.datefmt)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['component'] = _component(record.name)
        # null when the record has no such context
        log_record.setdefault('surface', getattr(record, 'surface', None))
        log_record.setdefault('event', getattr(record, 'event', None))


def _component(name: str) -> str:
    prefix = f"{ROOT_LOGGER}."
    return name[len(prefix):] if name.startswith(prefix) else name


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    logger_name: Optional[str] = None
) -> logging.Logger:
    """
    Configure the gateway's logger tree.

    Calling it again replaces the handler rather than stacking a second one.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: One JSON object per line instead of plain text
        logger_name: Logger to configure; the polynuts root by default

    Returns:
        The configured logger
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(logger_name or ROOT_LOGGER)
    logger.setLevel(numeric_level)
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    if json_format:
        handler.setFormatter(GatewayJsonFormatter('%(timestamp)s %(level)s %(logger)s %(message)s'))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger with the given name."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


class OrderLogger:
    """Specialized logger for order lifecycle events."""

    def __init__(self):
        self.logger = get_logger("orders")

    def order_placed(
        self,
        order_id: str,
        token_id: str,
        side: str,
        size: str,
        price: str
    ):
        """Log when an order is accepted by the exchange."""
        self.logger.info(
            "Order placed",
            extra={
                "event": "order_placed",
                "order_id": order_id,
                "token_id": token_id,
                "side": side,
                "size": size,
                "price": price
            }
        )

    def order_cancelled(self, order_id: str):
        """Log when an order cancellation is acknowledged."""
        self.logger.info(
            "Order cancelled",
            extra={
                "event": "order_cancelled",
                "order_id": order_id
            }
        )

    def order_failed(
        self,
        action: str,
        reason: str,
        order_id: Optional[str] = None,
        token_id: Optional[str] = None
    ):
        """Log when an order action is rejected or fails in transit."""
        self.logger.error(
            "Order action failed",
            extra={
                "event": "order_failed",
                "action": action,
                "order_id": order_id,
                "token_id": token_id,
                "reason": reason
            }
        )
