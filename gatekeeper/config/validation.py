"""Validation for the authorizer chain configuration.

Pure functions: they read the configuration (plus the kubeconfig path on disk) and return
every defect found as a list of `FieldError`. Nothing here raises for bad content or
mutates its input.
"""

from __future__ import annotations

import os
import stat
from datetime import timedelta
from typing import AbstractSet, List, Optional, Set

from gatekeeper.config.expressions import DEFAULT_EXPRESSION_CHECKER, ExpressionChecker, sample_subject_access_review
from gatekeeper.config.types import (
    CONNECTION_IN_CLUSTER,
    CONNECTION_KUBECONFIG_FILE,
    FAILURE_POLICY_DENY,
    FAILURE_POLICY_NO_OPINION,
    MAX_WEBHOOK_TIMEOUT,
    SAR_VERSION_V1,
    SAR_VERSION_V1BETA1,
    SUPPORTED_CONNECTION_TYPES,
    SUPPORTED_FAILURE_POLICIES,
    SUPPORTED_SAR_VERSIONS,
    TYPE_WEBHOOK,
    AuthorizationConfiguration,
    WebhookConfiguration,
)
from gatekeeper.core.duration import format_duration
from gatekeeper.core.field import FieldError, FieldPath, duplicate, invalid, not_supported, required


def validate_authorization_configuration(
    fld_path: Optional[FieldPath],
    config: AuthorizationConfiguration,
    known_types: AbstractSet[str],
    repeatable_types: AbstractSet[str],
    *,
    allow_empty: bool = False,
    expression_checker: Optional[ExpressionChecker] = None,
) -> List[FieldError]:
    """
    Validate an authorizer chain.

    Args:
        fld_path: Parent path for error attribution (None for the document root).
        config: The chain to validate.
        known_types: Authorizer types accepted in `authorizers[*].type`.
        repeatable_types: Types that may appear more than once in the chain.
        allow_empty: Accept a chain with no authorizers.
        expression_checker: Type-checker for webhook match conditions (default: no-op).

    Returns:
        Every defect found, in chain order. Empty means valid.
    """
    all_errs: List[FieldError] = []
    authorizers_path = fld_path.child("authorizers") if fld_path is not None else FieldPath("authorizers")

    if not config.authorizers and not allow_empty:
        all_errs.append(required(authorizers_path, "at least one authorization mode must be defined"))
        return all_errs

    # Names only become mandatory once they are needed to tell webhooks apart.
    require_name = config.webhook_count() > 1

    seen_types: Set[str] = set()
    seen_webhook_names: Set[str] = set()
    for i, a in enumerate(config.authorizers):
        path = authorizers_path.index(i)
        a_type = a.type
        if not a_type:
            all_errs.append(required(path.child("type")))
            continue
        if a_type not in known_types:
            all_errs.append(not_supported(path.child("type"), a_type, sorted(known_types)))
            continue
        if a_type in seen_types and a_type not in repeatable_types:
            all_errs.append(duplicate(path.child("type"), a_type))
            continue
        seen_types.add(a_type)

        if a_type == TYPE_WEBHOOK:
            if a.webhook is None:
                all_errs.append(required(path.child("webhook"), "required when type=Webhook"))
                continue
            all_errs.extend(
                validate_webhook_configuration(
                    path.child("webhook"),
                    a.webhook,
                    require_name,
                    seen_webhook_names,
                    expression_checker=expression_checker,
                )
            )
        elif a.webhook is not None:
            all_errs.append(invalid(path.child("webhook"), "non-null", "may only be specified when type=Webhook"))

    return all_errs


def validate_webhook_configuration(
    fld_path: FieldPath,
    c: WebhookConfiguration,
    require_name: bool,
    seen_names: Set[str],
    *,
    expression_checker: Optional[ExpressionChecker] = None,
) -> List[FieldError]:
    """
    Validate one webhook entry.

    `seen_names` is shared across the webhooks of a single chain walk and is updated in place
    (including with the empty name) so later entries can detect duplicates.
    """
    all_errs: List[FieldError] = []

    if not c.name:
        if require_name:
            all_errs.append(required(fld_path.child("name")))
    elif c.name in seen_names:
        all_errs.append(duplicate(fld_path.child("name"), c.name))
    seen_names.add(c.name)

    all_errs.extend(_validate_positive_duration(fld_path.child("authorizedTTL"), c.authorized_ttl))
    all_errs.extend(_validate_positive_duration(fld_path.child("unauthorizedTTL"), c.unauthorized_ttl))

    timeout_errs = _validate_positive_duration(fld_path.child("timeout"), c.timeout)
    if timeout_errs:
        all_errs.extend(timeout_errs)
    elif c.timeout > MAX_WEBHOOK_TIMEOUT:
        all_errs.append(
            invalid(fld_path.child("timeout"), format_duration(c.timeout), f"must be <= {format_duration(MAX_WEBHOOK_TIMEOUT)}")
        )

    sar_version = c.subject_access_review_version
    sample_request = None
    if not sar_version:
        all_errs.append(required(fld_path.child("subjectAccessReviewVersion")))
    elif sar_version in (SAR_VERSION_V1, SAR_VERSION_V1BETA1):
        sample_request = sample_subject_access_review(sar_version)
    else:
        all_errs.append(not_supported(fld_path.child("subjectAccessReviewVersion"), sar_version, SUPPORTED_SAR_VERSIONS))

    if not c.failure_policy:
        all_errs.append(required(fld_path.child("failurePolicy")))
    elif c.failure_policy not in (FAILURE_POLICY_NO_OPINION, FAILURE_POLICY_DENY):
        all_errs.append(not_supported(fld_path.child("failurePolicy"), c.failure_policy, SUPPORTED_FAILURE_POLICIES))

    all_errs.extend(_validate_connection_info(fld_path.child("connectionInfo"), c))

    checker = expression_checker or DEFAULT_EXPRESSION_CHECKER
    for j, condition in enumerate(c.match_conditions):
        expr_path = fld_path.child("matchConditions").index(j).child("expression")
        if not (condition.expression or "").strip():
            all_errs.append(required(expr_path))
        else:
            all_errs.extend(validate_webhook_match_condition(expr_path, condition.expression, sample_request, checker))

    return all_errs


def _validate_positive_duration(fld_path: FieldPath, d: timedelta) -> List[FieldError]:
    if d == timedelta(0):
        return [required(fld_path)]
    if d < timedelta(0):
        return [invalid(fld_path, format_duration(d), "must be greater than 0")]
    return []


def _validate_connection_info(fld_path: FieldPath, c: WebhookConfiguration) -> List[FieldError]:
    conn = c.connection_info
    kubeconfig_path = fld_path.child("kubeConfigFile")

    if not conn.type:
        return [required(fld_path.child("type"))]

    if conn.type == CONNECTION_IN_CLUSTER:
        if conn.kube_config_file is not None:
            return [invalid(kubeconfig_path, conn.kube_config_file, "can only be set when type=KubeConfigFile")]
        return []

    if conn.type == CONNECTION_KUBECONFIG_FILE:
        path = conn.kube_config_file
        if not path:
            return [required(kubeconfig_path)]
        if not os.path.isabs(path):
            return [invalid(kubeconfig_path, path, "must be an absolute path")]
        try:
            # lstat: a symlink is not accepted as the kubeconfig itself.
            info = os.lstat(path)
        except OSError as e:
            return [invalid(kubeconfig_path, path, f"error loading file: {e}")]
        if not stat.S_ISREG(info.st_mode):
            return [invalid(kubeconfig_path, path, "must be a regular file")]
        return []

    return [not_supported(fld_path.child("type"), conn.type, SUPPORTED_CONNECTION_TYPES)]


def validate_webhook_match_condition(
    fld_path: FieldPath,
    expression: str,
    sample_request: Optional[dict],
    checker: Optional[ExpressionChecker] = None,
) -> List[FieldError]:
    """Type-check a single non-blank match-condition expression via the pluggable checker."""
    return list((checker or DEFAULT_EXPRESSION_CHECKER).check(fld_path, expression, sample_request))
