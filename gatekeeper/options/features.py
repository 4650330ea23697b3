"""Feature gates.

Parsed once at configuration-load time and passed down as data; nothing consults them
mid-validation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

from gatekeeper.core.errors import ConfigurationError

STRUCTURED_AUTHORIZATION_CONFIG = "StructuredAuthorizationConfig"

# Gate name -> default.
KNOWN_FEATURES: Dict[str, bool] = {
    STRUCTURED_AUTHORIZATION_CONFIG: False,
}


@dataclass(frozen=True)
class FeatureGates:
    structured_authorization_config: bool = KNOWN_FEATURES[STRUCTURED_AUTHORIZATION_CONFIG]

    def enabled(self, name: str) -> bool:
        if name == STRUCTURED_AUTHORIZATION_CONFIG:
            return self.structured_authorization_config
        raise ConfigurationError(f"unknown feature gate {name!r}")


def _parse_bool(name: str, raw: str) -> bool:
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    raise ConfigurationError(f"invalid value of {name}={raw}, err: expected a boolean")


def parse_feature_gates(raw: Optional[str]) -> FeatureGates:
    """
    Parse a `Name=bool,Name2=bool` feature-gate string.

    Unknown gates and malformed pairs are fatal configuration errors.
    """
    values = dict(KNOWN_FEATURES)
    for item in (raw or "").split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ConfigurationError(f"missing bool value for feature gate {item!r}")
        name, _, val = item.partition("=")
        name = name.strip()
        if name not in KNOWN_FEATURES:
            raise ConfigurationError(f"unrecognized feature gate: {name}")
        values[name] = _parse_bool(name, val)

    return FeatureGates(structured_authorization_config=values[STRUCTURED_AUTHORIZATION_CONFIG])


def load_feature_gates() -> FeatureGates:
    """
    Load feature gates from env (ConfigMap/Secret friendly).

    Recommended vars:
    - FEATURE_GATES=StructuredAuthorizationConfig=true
    """
    return parse_feature_gates(os.getenv("FEATURE_GATES", ""))
