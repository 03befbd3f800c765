"""Command-line layer: argument builders, command handlers and console output."""
