"""Command implementations for the importmapper CLI."""
