"""Authorizer chain configuration model.

This is the one in-memory shape shared by both configuration surfaces (structured file and
legacy flags). It carries no behavior beyond field access and rendering; validation lives in
`gatekeeper.config.validation`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from gatekeeper.core.duration import format_duration

TYPE_WEBHOOK = "Webhook"

# Name given to the webhook synthesized from legacy flags.
DEFAULT_WEBHOOK_NAME = "default"

SAR_VERSION_V1 = "v1"
SAR_VERSION_V1BETA1 = "v1beta1"
SUPPORTED_SAR_VERSIONS: Tuple[str, ...] = (SAR_VERSION_V1, SAR_VERSION_V1BETA1)

FAILURE_POLICY_NO_OPINION = "NoOpinion"
FAILURE_POLICY_DENY = "Deny"
SUPPORTED_FAILURE_POLICIES: Tuple[str, ...] = (FAILURE_POLICY_NO_OPINION, FAILURE_POLICY_DENY)

CONNECTION_IN_CLUSTER = "InClusterConfig"
CONNECTION_KUBECONFIG_FILE = "KubeConfigFile"
SUPPORTED_CONNECTION_TYPES: Tuple[str, ...] = (CONNECTION_IN_CLUSTER, CONNECTION_KUBECONFIG_FILE)

MAX_WEBHOOK_TIMEOUT = timedelta(seconds=30)


@dataclass(frozen=True)
class WebhookMatchCondition:
    expression: str = ""
    # Shown when this condition causes the webhook to be skipped.
    message: str = ""


@dataclass(frozen=True)
class WebhookConnectionInfo:
    type: str = ""
    kube_config_file: Optional[str] = None


@dataclass(frozen=True)
class WebhookConfiguration:
    # Used by monitoring to describe the webhook. Required once the chain has >1 webhook.
    name: str = ""
    authorized_ttl: timedelta = timedelta(0)
    unauthorized_ttl: timedelta = timedelta(0)
    timeout: timedelta = timedelta(0)
    subject_access_review_version: str = ""
    failure_policy: str = ""
    connection_info: WebhookConnectionInfo = field(default_factory=WebhookConnectionInfo)
    match_conditions: Tuple[WebhookMatchCondition, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        conn: Dict[str, Any] = {"type": self.connection_info.type}
        if self.connection_info.kube_config_file is not None:
            conn["kubeConfigFile"] = self.connection_info.kube_config_file
        return {
            "name": self.name,
            "authorizedTTL": format_duration(self.authorized_ttl),
            "unauthorizedTTL": format_duration(self.unauthorized_ttl),
            "timeout": format_duration(self.timeout),
            "subjectAccessReviewVersion": self.subject_access_review_version,
            "failurePolicy": self.failure_policy,
            "connectionInfo": conn,
            "matchConditions": [
                {"expression": mc.expression, **({"message": mc.message} if mc.message else {})}
                for mc in self.match_conditions
            ],
        }


@dataclass(frozen=True)
class AuthorizerConfiguration:
    type: str = ""
    webhook: Optional[WebhookConfiguration] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type}
        if self.webhook is not None:
            out["webhook"] = self.webhook.to_dict()
        return out


@dataclass(frozen=True)
class AuthorizationConfiguration:
    """Ordered authorizer chain. Order is the runtime evaluation order."""

    authorizers: Tuple[AuthorizerConfiguration, ...] = ()

    def webhook_count(self) -> int:
        return sum(1 for a in self.authorizers if a.type == TYPE_WEBHOOK)

    def to_dict(self) -> Dict[str, Any]:
        return {"authorizers": [a.to_dict() for a in self.authorizers]}


@dataclass(frozen=True)
class RetryBackoff:
    """Webhook retry schedule handed to the runtime authorizer (legacy flags only)."""

    initial_delay: timedelta = timedelta(milliseconds=500)
    factor: float = 1.5
    jitter: float = 0.2
    steps: int = 5
