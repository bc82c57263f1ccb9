"""Statutory element checks per legal framework.

Intake never rejects on these results: an incomplete notice still gets a
ticket and is flagged for remediation. Counter-notices are the exception
and raise ValidationIncomplete.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from notice_engine.db.enums import Jurisdiction, LegalFramework
from notice_engine.services.errors import ValidationIncomplete

# 17 U.S.C. § 512(c)(3)
DMCA_ELEMENTS: tuple[str, ...] = (
    "claimant_name",
    "claimant_address",
    "claimant_email",
    "copyrighted_work_title",
    "infringement_description",
    "good_faith_statement",
    "accuracy_statement",
    "perjury_statement",
    "electronic_signature",
)

# DSA Art. 16(2)
DSA_ELEMENTS: tuple[str, ...] = (
    "claimant_name",
    "claimant_email",
    "infringement_description",
    "infringing_content_url",
    "good_faith_statement",
)

BASIC_ELEMENTS: tuple[str, ...] = (
    "claimant_name",
    "claimant_email",
    "copyrighted_work_title",
    "infringement_description",
    "infringing_content_url",
)

FRAMEWORK_ELEMENTS: dict[str, tuple[str, ...]] = {
    LegalFramework.DMCA_512.value: DMCA_ELEMENTS,
    LegalFramework.DSA_ART16.value: DSA_ELEMENTS,
    LegalFramework.CDPA_1988.value: BASIC_ELEMENTS,
    # Forwarding to the alleged infringer needs a postal address too
    LegalFramework.CA_NOTICE.value: BASIC_ELEMENTS + ("claimant_address",),
    LegalFramework.AU_COPYRIGHT.value: BASIC_ELEMENTS,
    LegalFramework.WIPO_GLOBAL.value: BASIC_ELEMENTS,
}

# 17 U.S.C. § 512(g)(3)
COUNTER_NOTICE_ELEMENTS: tuple[str, ...] = (
    "identification_of_removed_content",
    "good_faith_belief",
    "consent_to_jurisdiction",
    "consent_to_service",
    "electronic_signature",
    "address",
)

DEFAULT_FRAMEWORKS: dict[str, str] = {
    Jurisdiction.US.value: LegalFramework.DMCA_512.value,
    Jurisdiction.EU.value: LegalFramework.DSA_ART16.value,
    Jurisdiction.UK.value: LegalFramework.CDPA_1988.value,
    Jurisdiction.CA.value: LegalFramework.CA_NOTICE.value,
    Jurisdiction.AU.value: LegalFramework.AU_COPYRIGHT.value,
}


@dataclass
class ValidationResult:
    valid: bool
    missing: list[str] = field(default_factory=list)

    def raise_if_incomplete(self) -> None:
        if not self.valid:
            raise ValidationIncomplete(self.missing)


def _is_present(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)


def _check(payload: Mapping[str, Any], elements: tuple[str, ...]) -> ValidationResult:
    missing = [name for name in elements if not _is_present(payload.get(name))]
    return ValidationResult(valid=not missing, missing=missing)


def get_default_framework(jurisdiction: str | None) -> str:
    """Framework for a jurisdiction; anything unrecognized falls back to WIPO."""
    key = jurisdiction.value if isinstance(jurisdiction, Jurisdiction) else jurisdiction
    return DEFAULT_FRAMEWORKS.get(key, LegalFramework.WIPO_GLOBAL.value)


def validate_dmca_elements(payload: Mapping[str, Any]) -> ValidationResult:
    return _check(payload, DMCA_ELEMENTS)


def validate(payload: Mapping[str, Any], framework: str | None) -> ValidationResult:
    """Check a notice payload against the elements its framework requires.

    False or empty attestations count as missing. Unknown frameworks are
    checked against the WIPO baseline.
    """
    key = framework.value if isinstance(framework, LegalFramework) else framework
    elements = FRAMEWORK_ELEMENTS.get(key, FRAMEWORK_ELEMENTS[LegalFramework.WIPO_GLOBAL.value])
    return _check(payload, elements)


def validate_counter_notice_elements(payload: Mapping[str, Any]) -> ValidationResult:
    return _check(payload, COUNTER_NOTICE_ELEMENTS)


def requires_canadian_forwarding(jurisdiction: str | None) -> bool:
    """Canada runs notice-and-notice: forward to the uploader, never remove."""
    key = jurisdiction.value if isinstance(jurisdiction, Jurisdiction) else jurisdiction
    return key == Jurisdiction.CA.value
