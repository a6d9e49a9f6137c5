from .email import EmailNotifier, Notifier, NullNotifier

__all__ = ["EmailNotifier", "Notifier", "NullNotifier"]
