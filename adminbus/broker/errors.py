"""
Exceptions raised by the admin message broker.

Only caller defects (oversized messages, messages without a source) are
raised out of the send path. Transport, codec and handler failures are
logged and dropped by the broker components that catch them.
"""


class AdminBusError(Exception):
    """Base class for all admin message broker errors."""
    pass


class MessageTooLargeError(AdminBusError):
    """
    Raised when a serialized admin message exceeds the maximum allowed size.

    This is a caller defect rather than a transient failure, so the message
    is neither published nor delivered locally.
    """

    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(
            f"AdminMessage is {size} bytes, larger than the maximum of {max_size} bytes. Can not send it."
        )
        self.size = size
        self.max_size = max_size


class MissingSourceError(AdminBusError):
    """Raised when an admin message is routed without a source node."""
    pass


class MalformedEndpointError(AdminBusError):
    """Raised when a subscription endpoint can not be mapped to a node."""
    pass


class SubscriptionListingError(AdminBusError):
    """Raised when any page of a subscription listing fails."""
    pass


class EnvelopeVerificationError(AdminBusError):
    """Raised when an inbound transport envelope is invalid."""
    pass


class TransportError(AdminBusError):
    """Raised by transports when a topic or subscription operation fails."""
    pass
