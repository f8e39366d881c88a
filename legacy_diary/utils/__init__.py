"""Validation, redaction, clock and error sanitizing helpers."""
