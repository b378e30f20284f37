"""Shared helpers for the certificate kernel."""
