"""Value types shared by all completors."""
from .suggestion import Issues, Range, Response, Suggestion, Suggestions, SuggestionType

__all__ = ["Issues", "Range", "Response", "Suggestion", "Suggestions", "SuggestionType"]
