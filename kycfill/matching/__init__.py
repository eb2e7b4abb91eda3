"""Text similarity helpers."""

from .fuzzy import DEFAULT_THRESHOLD, OptionMatch, best_option_match, similarity

__all__ = ["DEFAULT_THRESHOLD", "OptionMatch", "best_option_match", "similarity"]
