"""Tests for statutory element validation."""

import pytest

from notice_engine.services import statutory_validator
from notice_engine.services.errors import ValidationIncomplete

from conftest import dmca_payload


def test_complete_dmca_notice_is_valid():
    result = statutory_validator.validate_dmca_elements(dmca_payload())
    assert result.valid
    assert result.missing == []


def test_false_attestation_counts_as_missing():
    result = statutory_validator.validate(dmca_payload(perjury_statement=False), "DMCA_512")
    assert not result.valid
    assert result.missing == ["perjury_statement"]


def test_blank_strings_count_as_missing():
    payload = dmca_payload(electronic_signature="   ", claimant_address="")
    result = statutory_validator.validate_dmca_elements(payload)
    assert set(result.missing) == {"electronic_signature", "claimant_address"}


def test_missing_elements_reported_in_declared_order():
    result = statutory_validator.validate_dmca_elements({})
    assert result.missing == list(statutory_validator.DMCA_ELEMENTS)


def test_dsa_requires_content_url_not_address():
    payload = dmca_payload(claimant_address=None)
    assert statutory_validator.validate(payload, "DSA_ART16").valid
    payload.pop("infringing_content_url")
    assert statutory_validator.validate(payload, "DSA_ART16").missing == ["infringing_content_url"]


def test_canadian_framework_requires_postal_address():
    result = statutory_validator.validate(dmca_payload(claimant_address=None), "CA_NOTICE")
    assert result.missing == ["claimant_address"]


def test_unknown_framework_uses_baseline():
    payload = dmca_payload(good_faith_statement=False)
    assert statutory_validator.validate(payload, "made_up").valid


@pytest.mark.parametrize(
    "jurisdiction,framework",
    [
        ("US", "DMCA_512"),
        ("EU", "DSA_ART16"),
        ("UK", "CDPA_1988"),
        ("CA", "CA_NOTICE"),
        ("AU", "AU_COPYRIGHT"),
        ("WW", "WIPO_GLOBAL"),
        (None, "WIPO_GLOBAL"),
    ],
)
def test_default_framework(jurisdiction, framework):
    assert statutory_validator.get_default_framework(jurisdiction) == framework


def test_counter_notice_validation_raises_with_missing_list():
    with pytest.raises(ValidationIncomplete) as exc_info:
        statutory_validator.validate_counter_notice_elements(
            {"identification_of_removed_content": "track-123", "good_faith_belief": True}
        ).raise_if_incomplete()
    assert exc_info.value.missing == [
        "consent_to_jurisdiction",
        "consent_to_service",
        "electronic_signature",
        "address",
    ]


def test_only_canada_forwards():
    assert statutory_validator.requires_canadian_forwarding("CA")
    assert not statutory_validator.requires_canadian_forwarding("US")
    assert not statutory_validator.requires_canadian_forwarding(None)
