"""
Admin message broker.

Disseminates administrative control messages across all nodes of a
cluster over a topic based publish/subscribe transport:

- joining the topic exactly once per node
- deferred cleanup of subscriptions left behind by dead nodes
- routing of every message to local handling, the topic, or both
"""

from .broker import AdminMessageBroker as AdminMessageBroker
from .broker import build_callback_url as build_callback_url
from .env import Env as Env
from .env import load_env as load_env
from .errors import AdminBusError as AdminBusError
from .errors import EnvelopeVerificationError as EnvelopeVerificationError
from .errors import MalformedEndpointError as MalformedEndpointError
from .errors import MessageTooLargeError as MessageTooLargeError
from .errors import MissingSourceError as MissingSourceError
from .errors import SubscriptionListingError as SubscriptionListingError
from .errors import TransportError as TransportError
from .joiner import JoinResult as JoinResult
from .models import AdminMessage as AdminMessage
from .models import ApplicationEvent as ApplicationEvent
from .models import Node as Node
from .models import PreventSubscriptionCleanup as PreventSubscriptionCleanup
from .models import Subscription as Subscription
from .models import SubscriptionStatus as SubscriptionStatus
from .reaper import ReapResult as ReapResult
from .transport import InMemoryTransport as InMemoryTransport
from .transport import NotificationEnvelopeVerifier as NotificationEnvelopeVerifier
