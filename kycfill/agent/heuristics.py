"""Keyword fallback used when the language model mapping is unusable."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from ..page.scanner import FieldCandidate
from ..profile import IdentityProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KeywordRule:
    """Assigns ``slot`` when any phrase in ``any_of`` (or every word of one
    group in ``all_of``) occurs in a field's descriptor text."""

    slot: str
    any_of: Tuple[str, ...] = ()
    all_of: Tuple[Tuple[str, ...], ...] = ()
    none_of: Tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        if any(word in text for word in self.none_of):
            return False
        if any(phrase in text for phrase in self.any_of):
            return True
        return any(all(word in text for word in group) for group in self.all_of)


# Ordered: the first matching rule whose slot has a profile value wins.
FALLBACK_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule("firstName", any_of=("first name",)),
    KeywordRule("lastName", any_of=("last name",)),
    KeywordRule("email", any_of=("email",)),
    KeywordRule("phoneCountryCode", any_of=("phone country", "country code")),
    KeywordRule("phoneNumber", any_of=("phone", "contact")),
    KeywordRule("firstAddressLine", any_of=("address line 1",), all_of=(("address", "1"),)),
    KeywordRule("secondAddressLine", any_of=("address line 2",), all_of=(("address", "2"),)),
    KeywordRule("city", any_of=("city", "town")),
    KeywordRule("postcode", any_of=("postcode", "zip")),
    KeywordRule("country", any_of=("country",), none_of=("phone",)),
    KeywordRule("dob", any_of=("dob", "date")),
    KeywordRule("passport", any_of=("passport",)),
    KeywordRule("idFront", any_of=("id front", "front id", "idcard front")),
    KeywordRule("idBack", any_of=("id back", "back id", "idcard back")),
    KeywordRule("selfie", any_of=("selfie",)),
)


def classify_text(text: str, profile: IdentityProfile, rules: Sequence[KeywordRule] = FALLBACK_RULES) -> Optional[str]:
    for rule in rules:
        if rule.matches(text) and profile.has_value(rule.slot):
            return rule.slot
    return None


def fallback_classify(
    candidates: Sequence[FieldCandidate],
    profile: IdentityProfile,
    rules: Sequence[KeywordRule] = FALLBACK_RULES,
) -> Dict[int, Optional[str]]:
    """Return a mapping with an entry for every candidate index."""

    mapping = {candidate.index: classify_text(candidate.descriptor_text(), profile, rules) for candidate in candidates}
    logger.info(
        "Applied keyword fallback classification",
        extra={"fields": len(mapping), "assigned": sum(1 for slot in mapping.values() if slot)},
    )
    return mapping


__all__ = ["FALLBACK_RULES", "KeywordRule", "classify_text", "fallback_classify"]
