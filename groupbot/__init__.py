"""Building blocks for a group chat bot: reminders, moderation helpers and small utilities."""

__version__ = "0.1.0"