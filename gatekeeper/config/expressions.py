from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Protocol

from gatekeeper.config.types import SAR_VERSION_V1, SAR_VERSION_V1BETA1
from gatekeeper.core.field import FieldError, FieldPath

# Field layout of a SubjectAccessReview per API version. Match-condition expressions are
# evaluated against `request`, so a type-checker needs the shape of the version the webhook
# speaks. v1beta1 spells the groups field `group`.
_SAMPLE_SUBJECT_ACCESS_REVIEWS: Dict[str, Dict[str, Any]] = {
    SAR_VERSION_V1: {
        "apiVersion": "authorization.k8s.io/v1",
        "kind": "SubjectAccessReview",
        "spec": {
            "resourceAttributes": {
                "namespace": "",
                "verb": "",
                "group": "",
                "version": "",
                "resource": "",
                "subresource": "",
                "name": "",
            },
            "nonResourceAttributes": {"path": "", "verb": ""},
            "user": "",
            "groups": [],
            "extra": {},
            "uid": "",
        },
    },
    SAR_VERSION_V1BETA1: {
        "apiVersion": "authorization.k8s.io/v1beta1",
        "kind": "SubjectAccessReview",
        "spec": {
            "resourceAttributes": {
                "namespace": "",
                "verb": "",
                "group": "",
                "version": "",
                "resource": "",
                "subresource": "",
                "name": "",
            },
            "nonResourceAttributes": {"path": "", "verb": ""},
            "user": "",
            "group": [],
            "extra": {},
            "uid": "",
        },
    },
}


def sample_subject_access_review(version: str) -> Optional[Dict[str, Any]]:
    """Return a copy of the request shape for a SAR version, or None if the version is unknown."""
    sample = _SAMPLE_SUBJECT_ACCESS_REVIEWS.get(version)
    if sample is None:
        return None
    return copy.deepcopy(sample)


class ExpressionChecker(Protocol):
    """
    Type-checks a match-condition expression against the request shape it will see.

    Implementations return field errors attributed to `fld_path`; they must not raise for
    a malformed expression.
    """

    def check(self, fld_path: FieldPath, expression: str, sample_request: Optional[Dict[str, Any]]) -> List[FieldError]:
        """Return errors for `expression`; empty when it is acceptable."""


class NoopExpressionChecker:
    """Accepts every non-blank expression. Stands in until a CEL type-checker is wired in."""

    def check(self, fld_path: FieldPath, expression: str, sample_request: Optional[Dict[str, Any]]) -> List[FieldError]:
        return []


DEFAULT_EXPRESSION_CHECKER: ExpressionChecker = NoopExpressionChecker()
