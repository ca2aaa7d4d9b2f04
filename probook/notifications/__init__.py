"""Notification channel policy, templates and providers."""
