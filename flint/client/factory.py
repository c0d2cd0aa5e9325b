# flint/client/factory.py
from __future__ import annotations

import importlib

from flint.client.base import BotClient
from flint.client.local import LocalSimulation
from flint.utils.errors import ConnectionLost, UserInputError
from flint.utils.logger import logs
from flint.utils.retry import Retry


def resolve_client_class(spec: str) -> type:
    """
    "local" or "package.module:ClassName"
    """
    if spec == "local":
        return LocalSimulation

    module_name, _, class_name = spec.partition(":")
    if not module_name or not class_name:
        raise UserInputError(f"client must be 'local' or 'module:Class', got {spec!r}")

    try:
        module = importlib.import_module(module_name)
        cls = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise UserInputError(f"cannot import client {spec!r}: {e}") from e

    if not (isinstance(cls, type) and issubclass(cls, BotClient)):
        raise UserInputError(f"{spec!r} is not a BotClient implementation")
    return cls


def create_client(server_cfg) -> BotClient:
    """
    Instantiate and connect the configured client.

    Connection bootstrap is the only place the runner retries.
    """
    cls = resolve_client_class(server_cfg.client)
    client = cls()

    logs.info(f"[Client] connecting {cls.__name__} to {server_cfg.address}")
    try:
        Retry.run(
            client.connect,
            server_cfg.address,
            server_cfg.username,
            exceptions=(OSError,),
            max_attempts=server_cfg.connect_attempts,
            delay=server_cfg.connect_delay,
        )
    except OSError as e:
        raise ConnectionLost(f"cannot connect to {server_cfg.address}: {e}") from e

    logs.info(f"[Client] connected as {server_cfg.username}")
    return client
