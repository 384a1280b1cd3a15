from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    # broker (NATS_HOST / NATS_PORT / NATS_TOKEN), all required
    nats_host: str
    nats_port: int = Field(ge=1, le=65535)
    nats_token: SecretStr

    # choose transport impl
    bus_impl: Literal["inproc", "nats"] = "nats"
    connect_timeout_s: float = Field(default=2.0, gt=0)

    # nats-py reconnect knobs; 0 or negative attempts mean "retry forever" there
    max_reconnect_attempts: int = Field(default=3, ge=1)
    reconnect_time_wait_s: float = Field(default=0.5, ge=0)

    @field_validator("nats_host")
    @classmethod
    def _host_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("nats_token")
    @classmethod
    def _token_not_blank(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("must not be empty")
        return v

    @property
    def nats_url(self) -> str:
        return f"nats://{self.nats_host}:{self.nats_port}"
