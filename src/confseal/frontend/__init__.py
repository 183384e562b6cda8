"""User-facing frontends of confseal."""
