"""Command line interface for git revision."""
