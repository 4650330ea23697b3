from __future__ import annotations

import json
from pathlib import Path

import pytest


def test_cli_default_settings_are_valid(capsys: pytest.CaptureFixture[str]) -> None:
    import main

    assert main.main([]) == 0
    assert capsys.readouterr().out == ""


def test_cli_legacy_flags_dump_json(kubeconfig: str, capsys: pytest.CaptureFixture[str]) -> None:
    import main

    rc = main.main(
        [
            "--authorization-mode",
            "Node,RBAC,Webhook",
            "--authorization-webhook-config-file",
            kubeconfig,
            "--authorization-webhook-version",
            "v1",
            "--authorization-webhook-cache-authorized-ttl",
            "60s",
            "--dump-json",
        ]
    )
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert [a["type"] for a in out["authorizers"]] == ["Node", "RBAC", "Webhook"]
    wh = out["authorizers"][2]["webhook"]
    assert wh["name"] == "default"
    assert wh["authorizedTTL"] == "1m0s"
    assert wh["unauthorizedTTL"] == "30s"
    assert wh["timeout"] == "30s"
    assert wh["failurePolicy"] == "NoOpinion"


def test_cli_reports_every_error(capsys: pytest.CaptureFixture[str]) -> None:
    import main

    rc = main.main(["--authorization-mode", "ABAC,Bogus,ABAC"])
    assert rc == 1
    err = capsys.readouterr().err
    assert 'authorizers[1].type: Unsupported value: "Bogus"' in err
    assert 'authorizers[2].type: Duplicate value: "ABAC"' in err
    assert "authorization-mode ABAC's authorization policy file not passed" in err


def test_cli_structured_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    import main

    p = tmp_path / "authz.yaml"
    p.write_text(
        "apiVersion: apiserver.config.k8s.io/v1alpha1\n"
        "kind: AuthorizationConfiguration\n"
        "authorizers:\n"
        "  - type: Node\n"
        "  - type: RBAC\n",
        encoding="utf-8",
    )
    rc = main.main(
        [
            "--feature-gates",
            "StructuredAuthorizationConfig=true",
            "--authorization-config",
            str(p),
            "--dump-json",
        ]
    )
    assert rc == 0
    assert json.loads(capsys.readouterr().out) == {"authorizers": [{"type": "Node"}, {"type": "RBAC"}]}


def test_cli_bad_settings_exit_2() -> None:
    import main

    assert main.main(["--authorization-webhook-cache-authorized-ttl", "soon"]) == 2
    assert main.main(["--feature-gates", "Nope=true"]) == 2
    assert main.main(["--authorization-webhook-cache-authorized-ttl", "999999999999h"]) == 2
