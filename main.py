#!/usr/bin/env python3
"""
Gatekeeper authorization config check.

Resolves the authorizer chain (structured file or legacy flags), validates it, and reports
every problem in one pass.
"""

import argparse
import dataclasses
import json
import logging
import sys
from typing import List, Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

logger = logging.getLogger("gatekeeper")


def build_parser() -> argparse.ArgumentParser:
    from gatekeeper.options.modes import AUTHORIZATION_MODE_CHOICES

    parser = argparse.ArgumentParser(
        description="Validate the API gatekeeper authorization chain configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Legacy flags
  python main.py --authorization-mode Node,RBAC,Webhook \\
      --authorization-webhook-config-file /etc/gatekeeper/webhook.kubeconfig

  # Structured file
  python main.py --feature-gates StructuredAuthorizationConfig=true \\
      --authorization-config /etc/gatekeeper/authorization-config.yaml --dump-json

Unset flags fall back to the AUTHORIZATION_* / FEATURE_GATES environment variables.
        """,
    )

    parser.add_argument(
        "--authorization-mode",
        help="Ordered list of plug-ins to do authorization on secure port. Comma-delimited list of: "
        + ",".join(AUTHORIZATION_MODE_CHOICES)
        + ".",
    )
    parser.add_argument(
        "--authorization-policy-file",
        help="File with authorization policy in json line by line format, used with --authorization-mode=ABAC.",
    )
    parser.add_argument(
        "--authorization-webhook-config-file",
        help="File with webhook configuration in kubeconfig format, used with --authorization-mode=Webhook.",
    )
    parser.add_argument(
        "--authorization-webhook-version",
        help="The API version of the authorization.k8s.io SubjectAccessReview to send to and expect from the webhook.",
    )
    parser.add_argument(
        "--authorization-webhook-cache-authorized-ttl",
        metavar="DURATION",
        help="The duration to cache 'authorized' responses from the webhook authorizer (e.g. 5m).",
    )
    parser.add_argument(
        "--authorization-webhook-cache-unauthorized-ttl",
        metavar="DURATION",
        help="The duration to cache 'unauthorized' responses from the webhook authorizer (e.g. 30s).",
    )
    parser.add_argument(
        "--authorization-config",
        help="File with Authorization Configuration to configure the authorizer chain. "
        "Requires the StructuredAuthorizationConfig feature gate.",
    )
    parser.add_argument("--feature-gates", help="Comma-separated Name=bool pairs (e.g. StructuredAuthorizationConfig=true)")
    parser.add_argument(
        "--dump-json", action="store_true", help="Print the resolved authorizer chain as JSON on stdout when valid"
    )
    return parser


def apply_flags(options, args):  # type: ignore[no-untyped-def]
    """Overlay explicitly passed flags on top of env-derived options."""
    from gatekeeper.core.duration import parse_duration

    changes = {}
    if args.authorization_mode is not None:
        changes["modes"] = tuple(m.strip() for m in args.authorization_mode.split(",") if m.strip())
    if args.authorization_policy_file is not None:
        changes["policy_file"] = args.authorization_policy_file
    if args.authorization_webhook_config_file is not None:
        changes["webhook_config_file"] = args.authorization_webhook_config_file
    if args.authorization_webhook_version is not None:
        changes["webhook_version"] = args.authorization_webhook_version
    if args.authorization_webhook_cache_authorized_ttl is not None:
        changes["webhook_cache_authorized_ttl"] = parse_duration(args.authorization_webhook_cache_authorized_ttl)
    if args.authorization_webhook_cache_unauthorized_ttl is not None:
        changes["webhook_cache_unauthorized_ttl"] = parse_duration(args.authorization_webhook_cache_unauthorized_ttl)
    if args.authorization_config is not None:
        changes["authorization_configuration_file"] = args.authorization_config
    return dataclasses.replace(options, **changes)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    from gatekeeper.core.errors import ConfigurationError
    from gatekeeper.core.field import to_aggregate
    from gatekeeper.options.authorization import load_authorization_options
    from gatekeeper.options.features import load_feature_gates, parse_feature_gates

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        gates = parse_feature_gates(args.feature_gates) if args.feature_gates is not None else load_feature_gates()
        options = apply_flags(load_authorization_options(), args)
    except (ConfigurationError, ValueError) as e:
        logger.error("Invalid settings: %s", e)
        return 2

    errors = options.validate(gates)
    if errors:
        agg = to_aggregate(errors)
        logger.error("Authorization configuration is invalid: %s", agg)
        for e in errors:
            print(f"  - {e}", file=sys.stderr)
        return 1

    authorizer_config = options.to_authorizer_config(gates)
    chain = authorizer_config.authorization_configuration
    logger.info(
        "Authorization configuration OK: %s",
        ",".join(a.type for a in chain.authorizers),
    )
    if args.dump_json:
        print(json.dumps(chain.to_dict(), indent=2, sort_keys=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
