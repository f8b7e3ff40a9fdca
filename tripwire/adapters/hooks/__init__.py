"""Process-level hooks that report uncaught exceptions."""
