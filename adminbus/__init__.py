from .broker import AdminMessageBroker as AdminMessageBroker
from .broker import AdminMessage as AdminMessage
from .broker import ApplicationEvent as ApplicationEvent
from .broker import Env as Env
from .broker import Node as Node
from .broker import PreventSubscriptionCleanup as PreventSubscriptionCleanup
