"""Command-line interface for the SQL batch loader."""
