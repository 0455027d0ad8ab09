"""Command-line interface for DbToolkit."""
