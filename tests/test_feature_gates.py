from __future__ import annotations

import pytest


def test_feature_gates_default_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    from gatekeeper.options.features import STRUCTURED_AUTHORIZATION_CONFIG, load_feature_gates

    monkeypatch.delenv("FEATURE_GATES", raising=False)
    gates = load_feature_gates()
    assert gates.structured_authorization_config is False
    assert gates.enabled(STRUCTURED_AUTHORIZATION_CONFIG) is False


def test_feature_gates_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    from gatekeeper.options.features import load_feature_gates

    monkeypatch.setenv("FEATURE_GATES", " StructuredAuthorizationConfig = true ")
    assert load_feature_gates().structured_authorization_config is True


@pytest.mark.parametrize(
    "raw,needle",
    [
        ("StructuredAuthorizationConfig", "missing bool value"),
        ("StructuredAuthorizationConfig=maybe", "expected a boolean"),
        ("SomethingElse=true", "unrecognized feature gate"),
    ],
)
def test_parse_feature_gates_rejects_bad_input(raw: str, needle: str) -> None:
    from gatekeeper.core.errors import ConfigurationError
    from gatekeeper.options.features import parse_feature_gates

    with pytest.raises(ConfigurationError) as ei:
        parse_feature_gates(raw)
    assert needle in str(ei.value)


def test_unknown_gate_lookup_is_an_error() -> None:
    from gatekeeper.core.errors import ConfigurationError
    from gatekeeper.options.features import FeatureGates

    with pytest.raises(ConfigurationError):
        FeatureGates().enabled("NotAGate")
