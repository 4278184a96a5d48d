"""RenoQuote: estimate intake, standard pricing, quote versioning and contract signing."""

__version__ = "0.1.0"
