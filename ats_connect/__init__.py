"""
ATS Connect - Applicant Tracking System integration engine.

Pulls job postings, candidates and applications from third-party ATS
providers, normalizes them into one schema and keeps a local mirror
consistent through scheduled syncs and inbound webhooks.
"""

__version__ = "0.1.0"
__app_name__ = "ATS-Connect"
