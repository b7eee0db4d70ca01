"""
Logging models for the admin message broker.

Subscription lifecycle components (SubscriptionRegistry, BootstrapJoiner,
SubscriptionReaper and the broker itself) log Broker* entries, carrying the
own node and the topic. The MessageRouter logs Router* entries, carrying
the own node and the kind of the message being routed.
"""

from adminbus.logging.models import Entry, LogLevel


# =============================================================================
# Subscription lifecycle Logging Models
# =============================================================================

class BrokerDebug(Entry, kw_only=True):
    """Debug-level logging for subscription lifecycle operations."""
    node_host: str
    node_port: int
    topic: str
    level: LogLevel = LogLevel.DEBUG


class BrokerInfo(Entry, kw_only=True):
    """Info-level logging for subscription lifecycle operations."""
    node_host: str
    node_port: int
    topic: str
    level: LogLevel = LogLevel.INFO


class BrokerWarning(Entry, kw_only=True):
    """Warning-level logging for subscription lifecycle operations."""
    node_host: str
    node_port: int
    topic: str
    level: LogLevel = LogLevel.WARN


class BrokerError(Entry, kw_only=True):
    """Error-level logging for subscription lifecycle operations."""
    node_host: str
    node_port: int
    topic: str
    level: LogLevel = LogLevel.ERROR


# =============================================================================
# MessageRouter Logging Models
# =============================================================================

class RouterDebug(Entry, kw_only=True):
    """Debug-level logging for MessageRouter operations."""
    node_host: str
    node_port: int
    message_kind: str
    level: LogLevel = LogLevel.DEBUG


class RouterWarning(Entry, kw_only=True):
    """Warning-level logging for MessageRouter operations."""
    node_host: str
    node_port: int
    message_kind: str
    level: LogLevel = LogLevel.WARN


class RouterError(Entry, kw_only=True):
    """Error-level logging for MessageRouter operations."""
    node_host: str
    node_port: int
    message_kind: str
    level: LogLevel = LogLevel.ERROR
