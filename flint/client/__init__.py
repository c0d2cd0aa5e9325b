from .base import BlockState, BotClient, Feed, Subscription, strip_namespace
from .local import LocalSimulation
from .factory import create_client, resolve_client_class

__all__ = [
    "BlockState", "BotClient", "Feed", "Subscription", "strip_namespace",
    "LocalSimulation", "create_client", "resolve_client_class",
]
