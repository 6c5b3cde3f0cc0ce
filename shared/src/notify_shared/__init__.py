"""Shared persistence, configuration and logging for the message dispatch services."""
