from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import pytest

from gatekeeper.config.types import RetryBackoff
from gatekeeper.core.field import to_aggregate
from gatekeeper.options.authorization import BuiltInAuthorizationOptions
from gatekeeper.options.features import FeatureGates

_LEGACY = FeatureGates(structured_authorization_config=False)
_STRUCTURED = FeatureGates(structured_authorization_config=True)

_STRUCTURED_YAML = """
apiVersion: apiserver.config.k8s.io/v1alpha1
kind: AuthorizationConfiguration
authorizers:
  - type: Webhook
    webhook:
      authorizedTTL: 5m
      unauthorizedTTL: 30s
      timeout: 3s
      subjectAccessReviewVersion: v1
      failurePolicy: NoOpinion
      connectionInfo:
        type: InClusterConfig
  - type: RBAC
"""


def _messages(errors: List[Exception]) -> str:
    agg = to_aggregate(errors)
    return "" if agg is None else str(agg)


@pytest.mark.parametrize(
    "modes,policy_file,webhook_file,backoff,expected",
    [
        (
            ("DoesNotExist",),
            "",
            "",
            None,
            'authorizers[0].type: Unsupported value: "DoesNotExist": supported values: '
            '"ABAC", "AlwaysAllow", "AlwaysDeny", "Node", "RBAC", "Webhook"',
        ),
        ((), "", "", None, "authorizers: Required value: at least one authorization mode must be defined"),
        (("AlwaysAllow", "AlwaysAllow"), "", "", None, 'authorizers[1].type: Duplicate value: "AlwaysAllow"'),
        (("AlwaysAllow", "AlwaysDeny"), "", "", None, None),
        (("ABAC",), "", "", None, "authorization-mode ABAC's authorization policy file not passed"),
        (("AlwaysAllow",), "policy.jsonl", "", None, "cannot specify --authorization-policy-file without mode ABAC"),
        (("ABAC",), "policy.jsonl", "", None, None),
        (("Webhook",), "", "", None, "authorizers[0].webhook.connectionInfo.kubeConfigFile: Required value"),
        (
            ("AlwaysAllow",),
            "",
            "KUBECONFIG",
            None,
            "cannot specify --authorization-webhook-config-file without mode Webhook",
        ),
        (("Webhook",), "", "KUBECONFIG", None, None),
        (
            ("Webhook",),
            "",
            "KUBECONFIG",
            RetryBackoff(steps=0),
            "number of webhook retry attempts must be greater than 0, but is: 0",
        ),
    ],
)
def test_validate_legacy_flags(
    kubeconfig: str,
    modes,  # type: ignore[no-untyped-def]
    policy_file: str,
    webhook_file: str,
    backoff: Optional[RetryBackoff],
    expected: Optional[str],
) -> None:
    opts = BuiltInAuthorizationOptions(
        modes=modes,
        policy_file=policy_file,
        webhook_config_file=kubeconfig if webhook_file == "KUBECONFIG" else webhook_file,
        webhook_retry_backoff=backoff,
    )
    errs = opts.validate(_LEGACY)
    if expected is None:
        assert errs == []
    else:
        assert errs, "expected an error"
        assert expected in _messages(errs)


def test_defaults_are_valid() -> None:
    opts = BuiltInAuthorizationOptions()
    assert opts.modes == ("AlwaysAllow",)
    assert opts.webhook_version == "v1beta1"
    assert opts.webhook_cache_authorized_ttl == timedelta(minutes=5)
    assert opts.webhook_cache_unauthorized_ttl == timedelta(seconds=30)
    assert opts.webhook_retry_backoff == RetryBackoff(
        initial_delay=timedelta(milliseconds=500), factor=1.5, jitter=0.2, steps=5
    )
    assert opts.validate(_LEGACY) == []


def test_validate_config_file_set_but_gate_disabled(tmp_path: Path) -> None:
    opts = BuiltInAuthorizationOptions(authorization_configuration_file=str(tmp_path / "authz.yaml"))
    msg = _messages(opts.validate(_LEGACY))
    assert "StructuredAuthorizationConfig is disabled but --authorization-config is set" in msg


def test_validate_gate_enabled_without_file() -> None:
    msg = _messages(BuiltInAuthorizationOptions().validate(_STRUCTURED))
    assert "StructuredAuthorizationConfig is enabled but --authorization-config is not set" in msg


def test_validate_structured_file_load_failure(tmp_path: Path) -> None:
    missing = str(tmp_path / "missing.yaml")
    msg = _messages(BuiltInAuthorizationOptions(authorization_configuration_file=missing).validate(_STRUCTURED))
    assert f"failed to load config from file {missing}" in msg


def test_validate_structured_file_reports_field_errors(tmp_path: Path) -> None:
    p = tmp_path / "authz.yaml"
    p.write_text(_STRUCTURED_YAML.replace("timeout: 3s", "timeout: 45s"), encoding="utf-8")
    errs = BuiltInAuthorizationOptions(authorization_configuration_file=str(p)).validate(_STRUCTURED)
    assert [str(e) for e in errs] == ['authorizers[0].webhook.timeout: Invalid value: "45s": must be <= 30s']


def test_resolve_structured_requires_path_before_loading() -> None:
    from gatekeeper.core.errors import ConfigurationError
    from gatekeeper.options.legacy import WebhookOptions
    from gatekeeper.options.resolve import resolve_authorization_configuration

    def _loader(path: str):  # type: ignore[no-untyped-def]
        raise AssertionError("loader must not be called")

    with pytest.raises(ConfigurationError):
        resolve_authorization_configuration(True, "", ["AlwaysAllow"], WebhookOptions(), loader=_loader)


def test_resolve_structured_ignores_legacy_modes(tmp_path: Path) -> None:
    from gatekeeper.options.legacy import WebhookOptions
    from gatekeeper.options.resolve import resolve_authorization_configuration

    p = tmp_path / "authz.yaml"
    p.write_text(_STRUCTURED_YAML, encoding="utf-8")
    config, errs = resolve_authorization_configuration(True, str(p), ["Bogus"], WebhookOptions())
    assert errs == []
    assert [a.type for a in config.authorizers] == ["Webhook", "RBAC"]


def test_resolve_structured_uses_injected_loader() -> None:
    from gatekeeper.config.types import AuthorizationConfiguration
    from gatekeeper.core.field import ErrorType
    from gatekeeper.options.legacy import WebhookOptions
    from gatekeeper.options.resolve import resolve_authorization_configuration

    seen = []

    def _loader(path: str) -> AuthorizationConfiguration:
        seen.append(path)
        return AuthorizationConfiguration()

    config, errs = resolve_authorization_configuration(True, "/etc/authz.yaml", [], WebhookOptions(), loader=_loader)
    assert seen == ["/etc/authz.yaml"]
    assert config.authorizers == ()
    assert [(e.type, e.field) for e in errs] == [(ErrorType.REQUIRED, "authorizers")]


def test_resolve_legacy_builds_and_validates(kubeconfig: str) -> None:
    from gatekeeper.options.legacy import WebhookOptions
    from gatekeeper.options.resolve import resolve_authorization_configuration

    config, errs = resolve_authorization_configuration(
        False, "", ["Node", "Webhook"], WebhookOptions(config_file=kubeconfig)
    )
    assert errs == []
    assert [a.type for a in config.authorizers] == ["Node", "Webhook"]


def test_to_authorizer_config_legacy(kubeconfig: str) -> None:
    opts = BuiltInAuthorizationOptions(modes=("Node", "Webhook"), webhook_config_file=kubeconfig)
    cfg = opts.to_authorizer_config(_LEGACY)
    assert cfg.policy_file == ""
    assert cfg.webhook_retry_backoff == RetryBackoff()
    assert [a.type for a in cfg.authorization_configuration.authorizers] == ["Node", "Webhook"]


def test_to_authorizer_config_structured_passes_policy_file(tmp_path: Path) -> None:
    p = tmp_path / "authz.yaml"
    p.write_text(_STRUCTURED_YAML, encoding="utf-8")
    opts = BuiltInAuthorizationOptions(authorization_configuration_file=str(p), policy_file="abac.jsonl")
    cfg = opts.to_authorizer_config(_STRUCTURED)
    assert cfg.policy_file == "abac.jsonl"
    assert [a.type for a in cfg.authorization_configuration.authorizers] == ["Webhook", "RBAC"]


def test_to_authorizer_config_raises_aggregate() -> None:
    from gatekeeper.core.field import AggregateError

    opts = BuiltInAuthorizationOptions(modes=("", "Nope"))
    with pytest.raises(AggregateError) as ei:
        opts.to_authorizer_config(_LEGACY)
    assert len(ei.value.errors) == 2
    assert str(ei.value).startswith("[authorizers[0].type: Required value, ")


def test_to_authorizer_config_structured_without_file() -> None:
    from gatekeeper.core.errors import ConfigurationError

    with pytest.raises(ConfigurationError):
        BuiltInAuthorizationOptions().to_authorizer_config(_STRUCTURED)


# --- env loading ---------------------------------------------------------------------------


def test_load_authorization_options_defaults() -> None:
    from gatekeeper.options.authorization import load_authorization_options

    assert load_authorization_options() == BuiltInAuthorizationOptions()


def test_load_authorization_options_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    from gatekeeper.options.authorization import load_authorization_options

    monkeypatch.setenv("AUTHORIZATION_MODE", "Node, RBAC ,Webhook")
    monkeypatch.setenv("AUTHORIZATION_WEBHOOK_CONFIG_FILE", "/etc/gatekeeper/webhook.kubeconfig")
    monkeypatch.setenv("AUTHORIZATION_WEBHOOK_VERSION", "v1")
    monkeypatch.setenv("AUTHORIZATION_WEBHOOK_CACHE_AUTHORIZED_TTL", "60s")
    monkeypatch.setenv("AUTHORIZATION_WEBHOOK_CACHE_UNAUTHORIZED_TTL", "10s")
    monkeypatch.setenv("AUTHORIZATION_WEBHOOK_RETRY_INITIAL_DELAY", "1s")
    monkeypatch.setenv("AUTHORIZATION_WEBHOOK_RETRY_FACTOR", "2")
    monkeypatch.setenv("AUTHORIZATION_WEBHOOK_RETRY_JITTER", "0.1")
    monkeypatch.setenv("AUTHORIZATION_WEBHOOK_RETRY_STEPS", "3")
    monkeypatch.setenv("AUTHORIZATION_CONFIG", "/etc/gatekeeper/authz.yaml")

    opts = load_authorization_options()
    assert opts.modes == ("Node", "RBAC", "Webhook")
    assert opts.webhook_config_file == "/etc/gatekeeper/webhook.kubeconfig"
    assert opts.webhook_version == "v1"
    assert opts.webhook_cache_authorized_ttl == timedelta(seconds=60)
    assert opts.webhook_cache_unauthorized_ttl == timedelta(seconds=10)
    assert opts.webhook_retry_backoff == RetryBackoff(
        initial_delay=timedelta(seconds=1), factor=2.0, jitter=0.1, steps=3
    )
    assert opts.authorization_configuration_file == "/etc/gatekeeper/authz.yaml"


def test_load_authorization_options_empty_mode_list(monkeypatch: pytest.MonkeyPatch) -> None:
    from gatekeeper.options.authorization import load_authorization_options

    monkeypatch.setenv("AUTHORIZATION_MODE", "")
    opts = load_authorization_options()
    assert opts.modes == ()
    assert "at least one authorization mode must be defined" in _messages(opts.validate(_LEGACY))


@pytest.mark.parametrize(
    "name,value",
    [
        ("AUTHORIZATION_WEBHOOK_CACHE_AUTHORIZED_TTL", "five minutes"),
        ("AUTHORIZATION_WEBHOOK_RETRY_STEPS", "many"),
    ],
)
def test_load_authorization_options_rejects_bad_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    from gatekeeper.core.errors import ConfigurationError
    from gatekeeper.options.authorization import load_authorization_options

    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError) as ei:
        load_authorization_options()
    assert name in str(ei.value)
