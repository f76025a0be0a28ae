"""Command-line interface for the blog archiver."""
