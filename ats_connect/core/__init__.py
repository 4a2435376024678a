"""Integration engine: provider adapters, field mapping, sync and webhooks."""
