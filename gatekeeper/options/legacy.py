"""Legacy flag surface -> authorizer chain.

Converts the flat `--authorization-*` settings into the same `AuthorizationConfiguration` the
structured file produces, so the runtime only ever consumes one schema. No validation here;
callers always run the result through `validate_authorization_configuration`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import List, Sequence

from gatekeeper.config.types import (
    CONNECTION_KUBECONFIG_FILE,
    DEFAULT_WEBHOOK_NAME,
    FAILURE_POLICY_NO_OPINION,
    MAX_WEBHOOK_TIMEOUT,
    SAR_VERSION_V1BETA1,
    TYPE_WEBHOOK,
    AuthorizationConfiguration,
    AuthorizerConfiguration,
    WebhookConfiguration,
    WebhookConnectionInfo,
)

# An empty mode list reaches the shared validator as an empty chain and is rejected there.
LEGACY_ALLOW_EMPTY_MODES = False


@dataclass(frozen=True)
class WebhookOptions:
    config_file: str = ""
    version: str = SAR_VERSION_V1BETA1
    cache_authorized_ttl: timedelta = timedelta(minutes=5)
    cache_unauthorized_ttl: timedelta = timedelta(seconds=30)


def build_authorization_configuration(modes: Sequence[str], webhook: WebhookOptions) -> AuthorizationConfiguration:
    authorizers: List[AuthorizerConfiguration] = []
    for mode in modes:
        if mode == TYPE_WEBHOOK:
            authorizers.append(
                AuthorizerConfiguration(
                    type=TYPE_WEBHOOK,
                    webhook=WebhookConfiguration(
                        name=DEFAULT_WEBHOOK_NAME,
                        authorized_ttl=webhook.cache_authorized_ttl,
                        unauthorized_ttl=webhook.cache_unauthorized_ttl,
                        # The flags never exposed timeout or failure policy; these keep the
                        # historical behavior.
                        timeout=MAX_WEBHOOK_TIMEOUT,
                        failure_policy=FAILURE_POLICY_NO_OPINION,
                        subject_access_review_version=webhook.version,
                        connection_info=WebhookConnectionInfo(
                            type=CONNECTION_KUBECONFIG_FILE,
                            kube_config_file=webhook.config_file,
                        ),
                    ),
                )
            )
        else:
            authorizers.append(AuthorizerConfiguration(type=mode))
    return AuthorizationConfiguration(authorizers=tuple(authorizers))
