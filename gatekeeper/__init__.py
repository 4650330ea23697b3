"""Authorization chain configuration for the API gatekeeper.

Builds the ordered authorizer chain from either a structured config file or the legacy
`--authorization-*` flags, and validates it before it is handed to the runtime authorizer.
"""
