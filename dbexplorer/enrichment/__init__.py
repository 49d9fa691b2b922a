"""
Enrichment passes that add descriptions to a loaded semantic model.
"""

from .data_dictionary import DataDictionaryEntry, apply_data_dictionary, load_data_dictionary
from .enricher import DescriptionEnricher, build_prompt

__all__ = [
    "DataDictionaryEntry",
    "DescriptionEnricher",
    "apply_data_dictionary",
    "build_prompt",
    "load_data_dictionary",
]
