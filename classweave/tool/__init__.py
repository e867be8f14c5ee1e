"""Command line tool for classweave."""
