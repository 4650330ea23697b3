from __future__ import annotations

import logging
from typing import Any, Union

import yaml
from pydantic import ValidationError

from gatekeeper.config import v1alpha1
from gatekeeper.config.types import AuthorizationConfiguration
from gatekeeper.core.errors import ConfigLoadError

logger = logging.getLogger(__name__)


def load_from_file(path: str) -> AuthorizationConfiguration:
    """
    Read and decode a structured AuthorizationConfiguration file (YAML or JSON).

    Raises:
        ConfigLoadError: the file cannot be read, is not valid YAML/JSON, or does not match
            the v1alpha1 schema. Semantic validation is left to the caller.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise ConfigLoadError(f"unable to read file {path!r}: {e}") from e

    config = load_from_data(data)
    logger.debug("Loaded authorization configuration from %s (%d authorizers)", path, len(config.authorizers))
    return config


def load_from_data(data: Union[bytes, str]) -> AuthorizationConfiguration:
    if not data or not data.strip():
        raise ConfigLoadError("empty authorization configuration")

    try:
        raw = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"unable to decode authorization configuration: {e}") from e

    return decode(raw)


def decode(raw: Any) -> AuthorizationConfiguration:
    """Decode an already-parsed document into the in-memory configuration."""
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"authorization configuration must be a mapping, got {type(raw).__name__}")

    api_version = raw.get("apiVersion")
    kind = raw.get("kind")
    if not api_version or not kind:
        raise ConfigLoadError("authorization configuration must set apiVersion and kind")
    if api_version != v1alpha1.API_VERSION or kind != v1alpha1.KIND:
        raise ConfigLoadError(f"no kind {kind!r} is registered for version {api_version!r}")

    try:
        model = v1alpha1.AuthorizationConfiguration.model_validate(raw)
    except ValidationError as e:
        raise ConfigLoadError(f"invalid authorization configuration: {e}") from e

    return model.to_internal()
