"""Authorization mode identifiers accepted in `--authorization-mode` and as `authorizers[*].type`."""

from __future__ import annotations

from typing import FrozenSet, Tuple

from gatekeeper.config.types import TYPE_WEBHOOK

MODE_ALWAYS_ALLOW = "AlwaysAllow"
MODE_ALWAYS_DENY = "AlwaysDeny"
MODE_ABAC = "ABAC"
MODE_WEBHOOK = TYPE_WEBHOOK
MODE_RBAC = "RBAC"
MODE_NODE = "Node"

AUTHORIZATION_MODE_CHOICES: Tuple[str, ...] = (
    MODE_ALWAYS_ALLOW,
    MODE_ALWAYS_DENY,
    MODE_ABAC,
    MODE_WEBHOOK,
    MODE_RBAC,
    MODE_NODE,
)

# Types that may appear more than once in a chain.
REPEATABLE_AUTHORIZER_TYPES: Tuple[str, ...] = (MODE_WEBHOOK,)

KNOWN_TYPES: FrozenSet[str] = frozenset(AUTHORIZATION_MODE_CHOICES)
REPEATABLE_TYPES: FrozenSet[str] = frozenset(REPEATABLE_AUTHORIZER_TYPES)
