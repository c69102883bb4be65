"""Integrations with other developer tools."""
