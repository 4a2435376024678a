"""Shared utilities: configuration, logging, constants and credential encryption."""
