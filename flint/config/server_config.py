#!filepath: flint/config/server_config.py
from pydantic import BaseModel, Field, field_validator


class ServerConfig(BaseModel):
    """
    Where the bot connects and which client implementation drives it.

    client:
      - "local"           : in-memory LocalSimulation (dry run)
      - "package.mod:Cls" : any BotClient implementation importable at runtime
    """

    address: str = "localhost:25565"
    client: str = "local"
    username: str = "FlintMC_TestBot"

    connect_attempts: int = Field(default=3, ge=1)
    connect_delay: float = Field(default=1.0, ge=0)

    @field_validator("address")
    @classmethod
    def _check_address(cls, v: str) -> str:
        host, _, port = v.rpartition(":")
        if not host:
            # bare host, default port
            return f"{v}:25565"
        if not port.isdigit():
            raise ValueError(f"invalid server address: {v!r}")
        return v
