from __future__ import annotations

import json
import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from dotenv import dotenv_values
from pydantic import ValidationError

from apps.server.settings import ServerSettings

LOG: Final = logging.getLogger("config")

ENV_PREFIX: Final = "NCR_"

# Broker settings keep their bare names in the environment.
BROKER_ENV: Final[dict[str, str]] = {
    "NATS_HOST": "nats_host",
    "NATS_PORT": "nats_port",
    "NATS_TOKEN": "nats_token",
}


class ConfigError(RuntimeError):
    """Startup configuration is missing or invalid."""


# --- paths --------------------------------------------------------------------


def _repo_root() -> Path:
    """Heuristic: walk up from this file until we find pyproject.toml."""
    p = Path(__file__).resolve()
    for ancestor in [p, *p.parents]:
        if (ancestor / "pyproject.toml").exists():
            return ancestor
    return Path.cwd()


def _profiles_dir(env: Mapping[str, str]) -> Path:
    # Allow override (useful for tests): NCR_CONFIG_DIR points *at* profiles/
    override = env.get(f"{ENV_PREFIX}CONFIG_DIR")
    if override:
        return Path(override)
    return _repo_root() / "configs" / "profiles"


def _load_profile_table(env: Mapping[str, str], profile: str) -> dict[str, Any]:
    f = _profiles_dir(env) / f"{profile}.toml"
    if not f.exists():
        return {}
    text = f.read_text("utf-8")
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse profile TOML: {f}") from e


def _load_dotenv(path: Path) -> dict[str, str]:
    if not path.is_file():
        LOG.warning(
            "Could not load .env file at %s; make sure NATS_HOST, NATS_PORT and NATS_TOKEN are set",
            path,
        )
        return {}
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


# --- env overlay helpers ------------------------------------------------------


def _coerce_env_value(raw: str) -> Any:
    """
    Try to parse JSON first (so numbers/bools work),
    then fall back to the original string.
    """
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _collect_env_for(
    fields: set[str], env: Mapping[str, str], prefix: str = ENV_PREFIX
) -> dict[str, Any]:
    """
    Collect overrides like NCR_BUS_IMPL, NCR_CONNECT_TIMEOUT_S -> {'bus_impl': ...}.
    Case-insensitive; underscores only.
    """
    out: dict[str, Any] = {}
    upper_to_field = {f.upper(): f for f in fields}
    plen = len(prefix)
    for k, v in env.items():
        if not k.startswith(prefix):
            continue
        key = k[plen:].upper()
        if key in upper_to_field:
            out[upper_to_field[key]] = _coerce_env_value(v)
    return out


def _collect_broker_env(env: Mapping[str, str]) -> dict[str, str]:
    # Raw strings: a numeric token must stay a string.
    return {field: env[var] for var, field in BROKER_ENV.items() if var in env}


def _describe(ex: ValidationError) -> str:
    field_to_env = {field: var for var, field in BROKER_ENV.items()}
    problems = []
    for err in ex.errors():
        field = str(err["loc"][0]) if err["loc"] else "?"
        var = field_to_env.get(field, f"{ENV_PREFIX}{field.upper()}")
        if err["type"] == "missing":
            problems.append(f"{var} environment variable is required")
        else:
            problems.append(f"{var}: {err['msg']}")
    return "; ".join(problems)


# --- public API ---------------------------------------------------------------


def load_server_settings(
    env: Mapping[str, str] | None = None,
    profile: str | None = None,
    dotenv_path: str | Path | None = None,
) -> ServerSettings:
    """
    Merge TOML [server] <- .env <- env (NATS_HOST/NATS_PORT/NATS_TOKEN, NCR_*).
    With an explicit ``env`` the .env file is only read when ``dotenv_path`` is given.
    """
    if env is None:
        env = {**_load_dotenv(Path(dotenv_path or ".env")), **os.environ}
    elif dotenv_path is not None:
        env = {**_load_dotenv(Path(dotenv_path)), **env}

    profile = (profile or env.get(f"{ENV_PREFIX}PROFILE") or "dev").strip()

    base: dict[str, Any] = {}

    # TOML overlay
    toml_table = _load_profile_table(env, profile)
    toml_server = toml_table.get("server", {}) if isinstance(toml_table, dict) else {}
    if isinstance(toml_server, dict):
        base.update(toml_server)

    # env overlay
    base.update(_collect_broker_env(env))
    app_fields = set(ServerSettings.model_fields) - set(BROKER_ENV.values())
    base.update(_collect_env_for(app_fields, env))

    try:
        return ServerSettings.model_validate(base)
    except ValidationError as ex:
        raise ConfigError(_describe(ex)) from ex
