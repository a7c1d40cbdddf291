"""Encoders for exporter output formats."""
