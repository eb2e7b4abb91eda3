"""Language model service, field classification and keyword fallback."""

from .classifier import FieldMapping, SemanticClassifier, normalize_mapping
from .heuristics import FALLBACK_RULES, KeywordRule, fallback_classify
from .llm import ClassificationService, DropdownIntent, LLMContext

__all__ = [
    "ClassificationService",
    "DropdownIntent",
    "FALLBACK_RULES",
    "FieldMapping",
    "KeywordRule",
    "LLMContext",
    "SemanticClassifier",
    "fallback_classify",
    "normalize_mapping",
]
