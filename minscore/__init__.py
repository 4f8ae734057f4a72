"""Min-score personalization criteria: taxonomy options and criteria edits."""

__version__ = "0.1.0"
