"""EVZ corporate charging policy — evaluator, checkout helpers and API."""

__version__ = "1.0.0"
