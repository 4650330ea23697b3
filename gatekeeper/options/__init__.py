"""Settings surface (flags/env, feature gates) and configuration source selection."""
