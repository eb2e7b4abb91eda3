"""Semantic field classification: language model first, keywords second."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from ..page.scanner import FieldCandidate
from ..profile import SLOT_KEYS, IdentityProfile, is_slot
from .heuristics import fallback_classify
from .llm import ClassificationService

logger = logging.getLogger(__name__)

FieldMapping = Dict[int, Optional[str]]


def _as_index(key: Any) -> Optional[int]:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.strip().lstrip("-").isdigit():
        return int(key.strip())
    return None


def normalize_mapping(raw: Any, count: int) -> Optional[FieldMapping]:
    """Coerce a model answer into a complete ``index -> slot`` mapping.

    Returns ``None`` when ``raw`` is not an object or none of its keys is an
    index in ``0..count-1``. Other keys are dropped; missing indices and values
    outside the slot vocabulary become ``None``.
    """

    if not isinstance(raw, dict) or not raw:
        return None
    mapping: FieldMapping = {index: None for index in range(count)}
    indexed = 0
    for key, value in raw.items():
        index = _as_index(key)
        if index is None or not 0 <= index < count:
            continue
        indexed += 1
        mapping[index] = value if is_slot(value) else None
    if not indexed:
        return None
    return mapping


class SemanticClassifier:
    """Maps scanned candidates onto profile slots."""

    def __init__(self, service: ClassificationService) -> None:
        self._service = service

    async def classify(self, candidates: Sequence[FieldCandidate], profile: IdentityProfile) -> FieldMapping:
        if not candidates:
            return {}

        raw = await self._service.classify_fields([candidate.to_prompt_dict() for candidate in candidates], SLOT_KEYS)
        mapping = normalize_mapping(raw, len(candidates))
        if mapping is None:
            logger.warning("Model mapping unusable, using keyword fallback", extra={"fields": len(candidates)})
            return fallback_classify(candidates, profile)

        logger.info(
            "Classified fields with language model",
            extra={"fields": len(mapping), "assigned": sum(1 for slot in mapping.values() if slot)},
        )
        return mapping


__all__ = ["FieldMapping", "SemanticClassifier", "normalize_mapping"]
