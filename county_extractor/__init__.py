"""Per-county property appraiser extractors emitting Elephant Lexicon records."""

__version__ = "0.3.0"
