"""Command-line front end for the practice engine."""
