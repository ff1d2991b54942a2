"""ESL essay grading: LLM grading with local error detection and score reconciliation."""

__version__ = "0.1.0"
