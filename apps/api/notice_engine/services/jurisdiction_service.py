"""Read-only view of the per-jurisdiction rules the engine enforces.

Everything here is derived from the SLA matrix and the statutory
validator, so the view cannot drift from what intake actually applies.
"""

from dataclasses import dataclass

from notice_engine.core.config import settings
from notice_engine.db.enums import Jurisdiction, LegalFramework
from notice_engine.services.sla_service import SLA_MATRIX
from notice_engine.services.statutory_validator import (
    FRAMEWORK_ELEMENTS,
    get_default_framework,
    requires_canadian_forwarding,
)

LEGAL_CITATIONS: dict[str, str] = {
    LegalFramework.DMCA_512.value: "17 U.S.C. § 512",
    LegalFramework.DSA_ART16.value: "Regulation (EU) 2022/2065, Art. 16",
    LegalFramework.CDPA_1988.value: "Copyright, Designs and Patents Act 1988",
    LegalFramework.CA_NOTICE.value: "Copyright Act, R.S.C. 1985, c. C-42, ss. 41.25-41.27",
    LegalFramework.AU_COPYRIGHT.value: "Copyright Act 1968",
    LegalFramework.WIPO_GLOBAL.value: "WIPO Copyright Treaty",
}


@dataclass(frozen=True)
class JurisdictionRule:
    jurisdiction: str
    legal_framework: str
    legal_citation: str
    sla_hours: dict[str, int]
    requires_forwarding: bool
    requires_content_removal: bool
    # None where content is never removed, so there is nothing to counter
    counter_notice_business_days: int | None
    required_elements: list[str]


def get_rule(jurisdiction: Jurisdiction | str) -> JurisdictionRule:
    code = Jurisdiction(jurisdiction).value
    framework = get_default_framework(code)
    forwarding = requires_canadian_forwarding(code)
    return JurisdictionRule(
        jurisdiction=code,
        legal_framework=framework,
        legal_citation=LEGAL_CITATIONS[framework],
        sla_hours={priority: row[code] for priority, row in SLA_MATRIX.items()},
        requires_forwarding=forwarding,
        requires_content_removal=not forwarding,
        counter_notice_business_days=None if forwarding else settings.COUNTER_NOTICE_BUSINESS_DAYS,
        required_elements=list(FRAMEWORK_ELEMENTS[framework]),
    )


def list_rules() -> list[JurisdictionRule]:
    return [get_rule(j) for j in Jurisdiction]
