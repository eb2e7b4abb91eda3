"""Dataclass-based identity profile and file reference models."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

TEXT_SLOTS: Tuple[str, ...] = (
    "firstName",
    "lastName",
    "email",
    "phoneCountryCode",
    "phoneNumber",
    "firstAddressLine",
    "secondAddressLine",
    "city",
    "postcode",
    "country",
    "dob",
)
"""Slots whose values are stored inline in the vault."""

DOCUMENT_SLOTS: Tuple[str, ...] = ("passport", "idFront", "idBack", "selfie")
"""Slots whose values are file reference identifiers."""

SLOT_KEYS: Tuple[str, ...] = TEXT_SLOTS + DOCUMENT_SLOTS
"""Fixed vocabulary the classifier may assign to a field."""

_ATTRIBUTE_BY_SLOT: Dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phoneCountryCode": "phone_country_code",
    "phoneNumber": "phone_number",
    "firstAddressLine": "first_address_line",
    "secondAddressLine": "second_address_line",
    "city": "city",
    "postcode": "postcode",
    "country": "country",
    "dob": "dob",
    "passport": "passport",
    "idFront": "id_front",
    "idBack": "id_back",
    "selfie": "selfie",
}


def is_slot(value: Any) -> bool:
    return isinstance(value, str) and value in _ATTRIBUTE_BY_SLOT


@dataclass(slots=True)
class IdentityProfile:
    """The user's identity data, keyed by semantic slot.

    Document slots hold identifiers produced by the file reference store, never
    inline bytes.
    """

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_country_code: Optional[str] = None
    phone_number: Optional[str] = None
    first_address_line: Optional[str] = None
    second_address_line: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    dob: Optional[str] = None
    passport: Optional[str] = None
    id_front: Optional[str] = None
    id_back: Optional[str] = None
    selfie: Optional[str] = None

    def get(self, slot: str) -> Optional[str]:
        """Return the value stored for ``slot`` (``None`` for unknown slots)."""

        attribute = _ATTRIBUTE_BY_SLOT.get(slot)
        if attribute is None:
            return None
        return getattr(self, attribute)

    def set(self, slot: str, value: Optional[str]) -> None:
        attribute = _ATTRIBUTE_BY_SLOT.get(slot)
        if attribute is None:
            raise KeyError(f"Unknown profile slot: {slot!r}")
        setattr(self, attribute, value)

    def has_value(self, slot: str) -> bool:
        value = self.get(slot)
        return bool(value and value.strip())

    def document_references(self) -> Iterator[str]:
        """Yield the non-empty file reference ids held by the document slots."""

        for slot in DOCUMENT_SLOTS:
            value = self.get(slot)
            if value:
                yield value

    def to_payload(self) -> Dict[str, Optional[str]]:
        """Return the camelCase mapping persisted inside the vault."""

        return {slot: self.get(slot) for slot in SLOT_KEYS}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "IdentityProfile":
        """Create a profile from a loosely typed mapping.

        Unknown keys are ignored; non-string scalars are coerced to ``str``.
        """

        profile = cls()
        for slot in SLOT_KEYS:
            value = payload.get(slot)
            if value is None:
                continue
            profile.set(slot, value if isinstance(value, str) else str(value))
        return profile

    def redacted(self) -> Dict[str, str]:
        """Return a display-safe view with every value masked."""

        return {slot: _mask(self.get(slot)) for slot in SLOT_KEYS}


def _mask(value: Optional[str]) -> str:
    if not value:
        return ""
    if len(value) <= 2:
        return "*" * len(value)
    return value[0] + "*" * (len(value) - 2) + value[-1]


@dataclass(frozen=True, slots=True)
class FileReference:
    """Binary attachment stored under a generated identifier."""

    file_id: str
    filename: str
    mime_type: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


__all__ = [
    "DOCUMENT_SLOTS",
    "FileReference",
    "IdentityProfile",
    "SLOT_KEYS",
    "TEXT_SLOTS",
    "is_slot",
]
