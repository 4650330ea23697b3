from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional, Tuple

from gatekeeper.config.expressions import ExpressionChecker
from gatekeeper.config.load import load_from_file
from gatekeeper.config.types import SAR_VERSION_V1BETA1, AuthorizationConfiguration, RetryBackoff
from gatekeeper.core.duration import parse_duration
from gatekeeper.core.errors import ConfigurationError
from gatekeeper.core.field import FieldError, to_aggregate
from gatekeeper.options.features import STRUCTURED_AUTHORIZATION_CONFIG, FeatureGates
from gatekeeper.options.legacy import WebhookOptions
from gatekeeper.options.modes import MODE_ABAC, MODE_ALWAYS_ALLOW, MODE_WEBHOOK
from gatekeeper.options.resolve import Loader, resolve_authorization_configuration


def default_webhook_retry_backoff() -> RetryBackoff:
    return RetryBackoff(initial_delay=timedelta(milliseconds=500), factor=1.5, jitter=0.2, steps=5)


@dataclass(frozen=True)
class BuiltInAuthorizationOptions:
    """Flat authorization settings (flags/env) plus the optional structured config file path."""

    modes: Tuple[str, ...] = (MODE_ALWAYS_ALLOW,)
    policy_file: str = ""
    webhook_config_file: str = ""
    webhook_version: str = SAR_VERSION_V1BETA1
    webhook_cache_authorized_ttl: timedelta = timedelta(minutes=5)
    webhook_cache_unauthorized_ttl: timedelta = timedelta(seconds=30)
    # Sleep schedule and attempt cap for webhook calls; bounds fan-out while the system is degraded.
    webhook_retry_backoff: Optional[RetryBackoff] = field(default_factory=default_webhook_retry_backoff)
    authorization_configuration_file: str = ""

    def webhook_options(self) -> WebhookOptions:
        return WebhookOptions(
            config_file=self.webhook_config_file,
            version=self.webhook_version,
            cache_authorized_ttl=self.webhook_cache_authorized_ttl,
            cache_unauthorized_ttl=self.webhook_cache_unauthorized_ttl,
        )

    def validate(
        self,
        gates: FeatureGates,
        *,
        loader: Optional[Loader] = None,
        expression_checker: Optional[ExpressionChecker] = None,
    ) -> List[Exception]:
        """
        Check the whole settings surface and return every problem found.

        Field errors from the chain validator come first, followed by cross-flag problems.
        """
        all_errors: List[Exception] = []

        structured = gates.enabled(STRUCTURED_AUTHORIZATION_CONFIG)
        if not structured and self.authorization_configuration_file:
            all_errors.append(
                ConfigurationError("StructuredAuthorizationConfig is disabled but --authorization-config is set")
            )

        if structured and not self.authorization_configuration_file:
            all_errors.append(
                ConfigurationError("StructuredAuthorizationConfig is enabled but --authorization-config is not set")
            )
        else:
            try:
                _, field_errs = self._resolve(structured, loader=loader, expression_checker=expression_checker)
                all_errors.extend(field_errs)
            except ConfigurationError as e:
                all_errors.append(e)

        for mode in self.modes:
            if mode == MODE_ABAC and not self.policy_file:
                all_errors.append(ConfigurationError("authorization-mode ABAC's authorization policy file not passed"))

        if self.policy_file and MODE_ABAC not in self.modes:
            all_errors.append(ConfigurationError("cannot specify --authorization-policy-file without mode ABAC"))
        if self.webhook_config_file and MODE_WEBHOOK not in self.modes:
            all_errors.append(
                ConfigurationError("cannot specify --authorization-webhook-config-file without mode Webhook")
            )
        if self.webhook_retry_backoff is not None and self.webhook_retry_backoff.steps <= 0:
            all_errors.append(
                ConfigurationError(
                    "number of webhook retry attempts must be greater than 0, "
                    f"but is: {self.webhook_retry_backoff.steps}"
                )
            )

        return all_errors

    def to_authorizer_config(
        self,
        gates: FeatureGates,
        *,
        loader: Optional[Loader] = None,
        expression_checker: Optional[ExpressionChecker] = None,
    ) -> "AuthorizerConfig":
        """
        Produce the validated handoff for the runtime authorizer.

        With StructuredAuthorizationConfig enabled the chain comes from
        `--authorization-config` and the legacy mode/webhook flags are disregarded (the
        policy file is still passed through for ABAC). Otherwise it is built from the flags.

        Raises:
            ConfigurationError: missing/unreadable structured file.
            AggregateError: the resulting chain has field errors.
        """
        config, errs = self._resolve(
            gates.enabled(STRUCTURED_AUTHORIZATION_CONFIG), loader=loader, expression_checker=expression_checker
        )
        agg = to_aggregate(errs)
        if agg is not None:
            raise agg
        return AuthorizerConfig(
            policy_file=self.policy_file,
            webhook_retry_backoff=self.webhook_retry_backoff,
            authorization_configuration=config,
        )

    def _resolve(
        self,
        structured: bool,
        *,
        loader: Optional[Loader],
        expression_checker: Optional[ExpressionChecker],
    ) -> Tuple[AuthorizationConfiguration, List[FieldError]]:
        return resolve_authorization_configuration(
            structured,
            self.authorization_configuration_file,
            self.modes,
            self.webhook_options(),
            loader=loader or load_from_file,
            expression_checker=expression_checker,
        )


@dataclass(frozen=True)
class AuthorizerConfig:
    """What the runtime authorizer consumes: the validated chain plus legacy-only knobs."""

    policy_file: str
    webhook_retry_backoff: Optional[RetryBackoff]
    authorization_configuration: AuthorizationConfiguration


def _split_csv(raw: str) -> List[str]:
    return [x.strip() for x in (raw or "").split(",") if x.strip()]


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


def _env_duration(name: str, default: timedelta) -> timedelta:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return parse_duration(raw)
    except ValueError as e:
        raise ConfigurationError(f"invalid {name}: {e}") from e


def _env_number(name: str, default, cast):  # type: ignore[no-untyped-def]
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"invalid {name}: {raw!r}") from e


def load_authorization_options() -> BuiltInAuthorizationOptions:
    """
    Load authorization settings from env (ConfigMap/Secret friendly).

    Recommended vars:
    - AUTHORIZATION_MODE=Node,RBAC,Webhook   (set but empty means no modes)
    - AUTHORIZATION_POLICY_FILE=/etc/gatekeeper/abac.jsonl
    - AUTHORIZATION_WEBHOOK_CONFIG_FILE=/etc/gatekeeper/webhook.kubeconfig
    - AUTHORIZATION_WEBHOOK_VERSION=v1
    - AUTHORIZATION_WEBHOOK_CACHE_AUTHORIZED_TTL=5m
    - AUTHORIZATION_WEBHOOK_CACHE_UNAUTHORIZED_TTL=30s
    - AUTHORIZATION_WEBHOOK_RETRY_INITIAL_DELAY=500ms
    - AUTHORIZATION_WEBHOOK_RETRY_FACTOR=1.5
    - AUTHORIZATION_WEBHOOK_RETRY_JITTER=0.2
    - AUTHORIZATION_WEBHOOK_RETRY_STEPS=5
    - AUTHORIZATION_CONFIG=/etc/gatekeeper/authorization-config.yaml

    Raises:
        ConfigurationError: a duration or number cannot be parsed.
    """
    defaults = BuiltInAuthorizationOptions()
    raw_modes = os.getenv("AUTHORIZATION_MODE")
    modes = tuple(_split_csv(raw_modes)) if raw_modes is not None else defaults.modes

    backoff_default = default_webhook_retry_backoff()
    backoff = RetryBackoff(
        initial_delay=_env_duration("AUTHORIZATION_WEBHOOK_RETRY_INITIAL_DELAY", backoff_default.initial_delay),
        factor=_env_number("AUTHORIZATION_WEBHOOK_RETRY_FACTOR", backoff_default.factor, float),
        jitter=_env_number("AUTHORIZATION_WEBHOOK_RETRY_JITTER", backoff_default.jitter, float),
        steps=_env_number("AUTHORIZATION_WEBHOOK_RETRY_STEPS", backoff_default.steps, int),
    )

    return BuiltInAuthorizationOptions(
        modes=modes,
        policy_file=_env_str("AUTHORIZATION_POLICY_FILE"),
        webhook_config_file=_env_str("AUTHORIZATION_WEBHOOK_CONFIG_FILE"),
        webhook_version=_env_str("AUTHORIZATION_WEBHOOK_VERSION", defaults.webhook_version),
        webhook_cache_authorized_ttl=_env_duration(
            "AUTHORIZATION_WEBHOOK_CACHE_AUTHORIZED_TTL", defaults.webhook_cache_authorized_ttl
        ),
        webhook_cache_unauthorized_ttl=_env_duration(
            "AUTHORIZATION_WEBHOOK_CACHE_UNAUTHORIZED_TTL", defaults.webhook_cache_unauthorized_ttl
        ),
        webhook_retry_backoff=backoff,
        authorization_configuration_file=_env_str("AUTHORIZATION_CONFIG"),
    )
