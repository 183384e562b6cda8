"""Core models, payloads, configuration and exceptions of confseal."""
