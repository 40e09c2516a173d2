"""Configuration module: frozen dataclass loaded from YAML, env vars and CLI args."""

import os
import argparse
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "production"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _parse_tags(value: str) -> dict[str, str]:
    """Parse ``k=v,k2=v2`` into a dict. Entries without ``=`` are ignored."""
    tags: dict[str, str] = {}
    for pair in value.split(","):
        if "=" not in pair:
            continue
        key, val = pair.split("=", 1)
        key = key.strip()
        if key:
            tags[key] = val.strip()
    return tags


@dataclass(frozen=True)
class ClientConfig:
    """Client settings.

    ``api_key`` and ``endpoint`` have no defaults and are never validated;
    a bad value only shows up later as a failed send. The ``tags`` mapping
    is the one mutable part and is updated in place by the client's tag
    setters.
    """

    api_key: str
    endpoint: str
    environment: str = DEFAULT_ENVIRONMENT
    release: Optional[str] = None
    tags: dict[str, str] = field(default_factory=dict)
    before_send: Optional[Callable] = None
    user_in_tags: bool = False
    filter_messages: bool = False


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
        return data if isinstance(data, dict) else {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}


def load_config(argv=None, before_send: Optional[Callable] = None) -> ClientConfig:
    """Build ClientConfig from defaults <- YAML <- env vars <- CLI args (highest priority).

    Pass argv for testability; when None, argparse reads sys.argv.
    """
    parser = argparse.ArgumentParser(description="Alertiqo error reporting client")
    parser.add_argument("--config", type=str, default=None)
    parser.add_argument("--api-key", type=str, default=None)
    parser.add_argument("--endpoint", type=str, default=None)
    parser.add_argument("--environment", type=str, default=None)
    parser.add_argument("--release", type=str, default=None)
    parser.add_argument("--tag", action="append", default=[], metavar="KEY=VALUE")
    parser.add_argument("--user-in-tags", action="store_true", default=False)
    parser.add_argument("--filter-messages", action="store_true", default=False)

    args, _unknown = parser.parse_known_args(argv)

    yaml_data = load_yaml_config(args.config or os.environ.get("ALERTIQO_CONFIG"))

    kwargs: dict = {
        "api_key": str(yaml_data.get("api_key", "")),
        "endpoint": str(yaml_data.get("endpoint", "")),
        "environment": str(yaml_data.get("environment", DEFAULT_ENVIRONMENT)),
        "release": str(yaml_data["release"]) if yaml_data.get("release") is not None else None,
        "user_in_tags": bool(yaml_data.get("user_in_tags", False)),
        "filter_messages": bool(yaml_data.get("filter_messages", False)),
    }
    tags = {str(k): str(v) for k, v in (yaml_data.get("tags") or {}).items()}

    # Env var overrides
    kwargs["api_key"] = os.environ.get("ALERTIQO_API_KEY", kwargs["api_key"])
    kwargs["endpoint"] = os.environ.get("ALERTIQO_ENDPOINT", kwargs["endpoint"])
    kwargs["environment"] = os.environ.get("ALERTIQO_ENVIRONMENT", kwargs["environment"])
    kwargs["release"] = os.environ.get("ALERTIQO_RELEASE", kwargs["release"])
    if "ALERTIQO_USER_IN_TAGS" in os.environ:
        kwargs["user_in_tags"] = _parse_bool(os.environ["ALERTIQO_USER_IN_TAGS"])
    if "ALERTIQO_FILTER_MESSAGES" in os.environ:
        kwargs["filter_messages"] = _parse_bool(os.environ["ALERTIQO_FILTER_MESSAGES"])
    tags.update(_parse_tags(os.environ.get("ALERTIQO_TAGS", "")))

    # CLI flags override env vars
    if args.api_key is not None:
        kwargs["api_key"] = args.api_key
    if args.endpoint is not None:
        kwargs["endpoint"] = args.endpoint
    if args.environment is not None:
        kwargs["environment"] = args.environment
    if args.release is not None:
        kwargs["release"] = args.release
    if args.user_in_tags:
        kwargs["user_in_tags"] = True
    if args.filter_messages:
        kwargs["filter_messages"] = True
    for pair in args.tag:
        tags.update(_parse_tags(pair))

    return ClientConfig(tags=tags, before_send=before_send, **kwargs)
