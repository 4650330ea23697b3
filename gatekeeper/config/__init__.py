"""Authorizer chain model, structured file loading and validation."""

from gatekeeper.config.types import (  # noqa: F401
    TYPE_WEBHOOK,
    AuthorizationConfiguration,
    AuthorizerConfiguration,
    RetryBackoff,
    WebhookConfiguration,
    WebhookConnectionInfo,
    WebhookMatchCondition,
)
from gatekeeper.config.validation import (  # noqa: F401
    validate_authorization_configuration,
    validate_webhook_configuration,
)
