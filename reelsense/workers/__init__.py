"""Celery worker application."""
