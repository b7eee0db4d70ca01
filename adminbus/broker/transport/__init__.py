from .envelope import NotificationEnvelope as NotificationEnvelope
from .envelope import NotificationEnvelopeVerifier as NotificationEnvelopeVerifier
from .in_memory_transport import InMemoryTransport as InMemoryTransport
from .transport_protocol import EnvelopeVerifier as EnvelopeVerifier
from .transport_protocol import Transport as Transport
