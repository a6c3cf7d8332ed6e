"""Command line interface for polydb."""
