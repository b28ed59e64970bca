"""Command-line interface for Pagewright."""
