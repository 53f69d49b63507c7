"""Command line interface for docshard."""
