from .message import AdminMessage as AdminMessage
from .message import AdminPayload as AdminPayload
from .message import ApplicationEvent as ApplicationEvent
from .message import PreventSubscriptionCleanup as PreventSubscriptionCleanup
from .node import Node as Node
from .subscription import Subscription as Subscription
from .subscription import SubscriptionPage as SubscriptionPage
from .subscription import SubscriptionStatus as SubscriptionStatus
