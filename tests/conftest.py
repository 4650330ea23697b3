"""
Pytest config.

Pins the repo root on sys.path so `import gatekeeper` works even when a global `pytest`
entrypoint is used without installing the package.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


@pytest.fixture
def kubeconfig(tmp_path: Path) -> str:
    """Absolute path to an existing, regular kubeconfig file."""
    p = tmp_path / "webhook.kubeconfig"
    p.write_text("apiVersion: v1\nkind: Config\nclusters: []\n", encoding="utf-8")
    return str(p)


@pytest.fixture(autouse=True)
def _clean_authorization_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "AUTHORIZATION_MODE",
        "AUTHORIZATION_POLICY_FILE",
        "AUTHORIZATION_WEBHOOK_CONFIG_FILE",
        "AUTHORIZATION_WEBHOOK_VERSION",
        "AUTHORIZATION_WEBHOOK_CACHE_AUTHORIZED_TTL",
        "AUTHORIZATION_WEBHOOK_CACHE_UNAUTHORIZED_TTL",
        "AUTHORIZATION_WEBHOOK_RETRY_INITIAL_DELAY",
        "AUTHORIZATION_WEBHOOK_RETRY_FACTOR",
        "AUTHORIZATION_WEBHOOK_RETRY_JITTER",
        "AUTHORIZATION_WEBHOOK_RETRY_STEPS",
        "AUTHORIZATION_CONFIG",
        "FEATURE_GATES",
    ):
        monkeypatch.delenv(name, raising=False)
