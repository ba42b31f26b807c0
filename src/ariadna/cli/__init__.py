"""Command-line interface for ariadna-tools."""
