"""Command line and Textual frontends."""
