"""PaperBank: test-paper authoring, assignment and PDF export for teachers."""

__version__ = "1.0.0"
