#!filepath: flint/config/app_config.py
from __future__ import annotations

import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .log_config import LogConfig
from .server_config import ServerConfig
from .run_config import RunConfig
from .control_config import ControlConfig


def project_root() -> str:
    """
    flint/config/app_config.py -> flint/config -> flint -> project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


def default_config_path() -> str:
    return os.path.join(os.path.dirname(__file__), "base.yml")


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    run: RunConfig = Field(default_factory=RunConfig)
    control: ControlConfig = Field(default_factory=ControlConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        Load YAML config + .env

        - default: flint/config/base.yml
        - FLINT_SERVER / FLINT_CLIENT override server.address / server.client
        - independent of the current working directory
        """
        root = project_root()

        # 1) .env at the project root
        load_dotenv(os.path.join(root, ".env"))

        # 2) which file
        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) env injection
        server = raw.setdefault("server", {}) or {}
        raw["server"] = server
        if os.getenv("FLINT_SERVER"):
            server["address"] = os.getenv("FLINT_SERVER")
        if os.getenv("FLINT_CLIENT"):
            server["client"] = os.getenv("FLINT_CLIENT")

        return cls(**raw)

    def override(self, section: str, **values) -> "AppConfig":
        """
        Return a copy with ``values`` applied to one section; ``None`` values
        are ignored so unset CLI flags keep the file's value.
        """
        values = {k: v for k, v in values.items() if v is not None}
        if not values:
            return self
        current = getattr(self, section)
        updated = current.model_validate({**current.model_dump(), **values})
        return self.model_copy(update={section: updated})
