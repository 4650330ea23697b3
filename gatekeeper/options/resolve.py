from __future__ import annotations

import logging
from typing import AbstractSet, Callable, List, Optional, Sequence, Tuple

from gatekeeper.config.expressions import ExpressionChecker
from gatekeeper.config.load import load_from_file
from gatekeeper.config.types import AuthorizationConfiguration
from gatekeeper.config.validation import validate_authorization_configuration
from gatekeeper.core.errors import ConfigLoadError, ConfigurationError
from gatekeeper.core.field import FieldError
from gatekeeper.options.legacy import LEGACY_ALLOW_EMPTY_MODES, WebhookOptions, build_authorization_configuration
from gatekeeper.options.modes import KNOWN_TYPES, REPEATABLE_TYPES

logger = logging.getLogger(__name__)

Loader = Callable[[str], AuthorizationConfiguration]


def resolve_authorization_configuration(
    use_structured_file: bool,
    file_path: str,
    modes: Sequence[str],
    webhook: WebhookOptions,
    *,
    known_types: AbstractSet[str] = KNOWN_TYPES,
    repeatable_types: AbstractSet[str] = REPEATABLE_TYPES,
    loader: Loader = load_from_file,
    expression_checker: Optional[ExpressionChecker] = None,
) -> Tuple[AuthorizationConfiguration, List[FieldError]]:
    """
    Pick the configuration source and validate the result.

    Structured mode loads `file_path` (the legacy mode/webhook flags are ignored); legacy mode
    synthesizes the chain from `modes` and `webhook`. Either way the chain is returned
    together with its field errors; the caller decides whether to proceed.

    Raises:
        ConfigurationError: structured mode is selected without a file path.
        ConfigLoadError: the structured file cannot be read or decoded.
    """
    if use_structured_file:
        if not file_path:
            raise ConfigurationError("StructuredAuthorizationConfig is enabled but no configuration file is defined")
        try:
            config = loader(file_path)
        except ConfigLoadError as e:
            raise ConfigLoadError(f"failed to load config from file {file_path}: {e}") from e
        logger.info("Using structured authorization configuration from %s", file_path)
        allow_empty = False
    else:
        config = build_authorization_configuration(modes, webhook)
        logger.info("Building authorization configuration from flags (modes=%s)", ",".join(modes))
        allow_empty = LEGACY_ALLOW_EMPTY_MODES

    errs = validate_authorization_configuration(
        None,
        config,
        known_types,
        repeatable_types,
        allow_empty=allow_empty,
        expression_checker=expression_checker,
    )
    if errs:
        logger.warning("Authorization configuration has %d error(s)", len(errs))
    return config, errs
