"""Wiki Reminder: compliance tracking for team wiki documentation."""

__version__ = "1.0.0"
