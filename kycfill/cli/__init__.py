"""Command line interface for kycfill."""
