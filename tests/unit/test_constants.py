"""
Tests for ats_connect.utils.constants: provider catalogue, enums and lookup tables.
"""

import pytest

from ats_connect.utils.constants import (
    APPLICATION_STATUS_ALIASES,
    COLLECTION_ENVELOPE_KEYS,
    DEFAULT_HOURLY_LIMIT,
    PROVIDER_DISPLAY_NAMES,
    PROVIDER_HOURLY_LIMITS,
    ApplicationStatus,
    AtsProvider,
    EntityType,
    FieldType,
    SyncType,
    WebhookEventType,
)


# ── AtsProvider ──────────────────────────────────────────────────────────────


class TestAtsProvider:
    def test_all_providers_present(self):
        expected = {
            "workday", "greenhouse", "lever", "bamboohr", "successfactors",
            "taleo", "icims", "jazz", "bullhorn", "jobvite",
        }
        assert {p.value for p in AtsProvider} == expected

    def test_every_provider_has_display_name_and_limit(self):
        for provider in AtsProvider:
            assert provider.value in PROVIDER_DISPLAY_NAMES
            assert provider.value in PROVIDER_HOURLY_LIMITS

    def test_display_name(self):
        assert AtsProvider.SUCCESSFACTORS.display_name == "SAP SuccessFactors"

    def test_from_value_is_case_insensitive(self):
        assert AtsProvider.from_value(" Greenhouse ") is AtsProvider.GREENHOUSE

    @pytest.mark.parametrize("value", [None, "", "acme-ats"])
    def test_from_value_unknown(self, value):
        assert AtsProvider.from_value(value) is None


class TestHourlyLimits:
    @pytest.mark.parametrize(
        "provider,limit",
        [
            ("workday", 100),
            ("greenhouse", 200),
            ("lever", 150),
            ("bamboohr", 50),
            ("successfactors", 75),
            ("taleo", 100),
            ("icims", 120),
            ("jazz", 180),
            ("bullhorn", 250),
            ("jobvite", 160),
        ],
    )
    def test_provider_limits(self, provider, limit):
        assert PROVIDER_HOURLY_LIMITS[provider] == limit

    def test_default_limit(self):
        assert DEFAULT_HOURLY_LIMIT == 100


# ── SyncType ─────────────────────────────────────────────────────────────────


class TestSyncType:
    def test_full_covers_all_entities_in_dependency_order(self):
        assert SyncType.FULL.entity_types == (
            EntityType.JOB,
            EntityType.CANDIDATE,
            EntityType.APPLICATION,
        )

    @pytest.mark.parametrize(
        "sync_type,entity_type",
        [
            (SyncType.JOBS, EntityType.JOB),
            (SyncType.CANDIDATES, EntityType.CANDIDATE),
            (SyncType.APPLICATIONS, EntityType.APPLICATION),
        ],
    )
    def test_single_entity_runs(self, sync_type, entity_type):
        assert sync_type.entity_types == (entity_type,)


# ── Vocabularies ─────────────────────────────────────────────────────────────


class TestVocabularies:
    def test_application_status_values(self):
        expected = {"new", "screening", "interview", "assessment", "offer", "hired", "rejected", "withdrawn"}
        assert {s.value for s in ApplicationStatus} == expected

    def test_status_aliases_only_target_canonical_values(self):
        assert set(APPLICATION_STATUS_ALIASES.values()) <= set(ApplicationStatus)

    def test_field_type_display_names(self):
        assert FieldType.BOOLEAN.display_name == "Yes/No"
        assert FieldType.ARRAY.display_name == "List"

    def test_entity_display_names(self):
        assert EntityType.JOB.display_name == "Job Posting"

    def test_webhook_event_display_name(self):
        assert WebhookEventType.HIRE_COMPLETED.display_name == "Hire Completed"

    def test_every_entity_has_envelope_keys(self):
        for entity_type in EntityType:
            assert "data" in COLLECTION_ENVELOPE_KEYS[entity_type]
