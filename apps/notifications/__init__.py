"""Notifications app package.

Reacts to committed payment events by queueing e-mail delivery through
Celery.
"""
