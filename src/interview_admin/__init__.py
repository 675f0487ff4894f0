"""Admin tooling for the interview practice platform's Firestore data."""

__version__ = "0.1.0"
