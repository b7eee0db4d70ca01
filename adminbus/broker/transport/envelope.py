import msgspec
import orjson

from adminbus.broker.errors import EnvelopeVerificationError


NOTIFICATION = "Notification"
SUBSCRIPTION_CONFIRMATION = "SubscriptionConfirmation"


class NotificationEnvelope(msgspec.Struct, kw_only=True):
    type: str
    message_id: str
    topic: str
    message: str | None = None
    timestamp: float | None = None

    def dump(self) -> bytes:
        return orjson.dumps(
            msgspec.structs.asdict(self)
        )


class NotificationEnvelopeVerifier:
    """
    Verifies NotificationEnvelopes pushed by the InMemoryTransport (or any
    transport using the same envelope layout) for a single topic.
    """

    def __init__(self, topic: str) -> None:
        self._topic = topic

    async def verify(self, data: bytes) -> str | None:
        try:
            envelope = msgspec.convert(
                orjson.loads(data),
                NotificationEnvelope,
            )

        except (orjson.JSONDecodeError, msgspec.ValidationError) as err:
            raise EnvelopeVerificationError(
                f"Invalid notification envelope: {err}"
            ) from err

        if envelope.topic != self._topic:
            raise EnvelopeVerificationError(
                f"Envelope {envelope.message_id} was sent to topic {envelope.topic}, expected {self._topic}"
            )

        if envelope.type != NOTIFICATION:
            return None

        if envelope.message is None:
            raise EnvelopeVerificationError(
                f"Notification {envelope.message_id} carries no message"
            )

        return envelope.message
