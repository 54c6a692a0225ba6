"""
Service modules used by the contact form pipeline.

This package contains configuration loading, message composition,
the single-use SMTP transport and delivery counters.
"""

__all__ = ['config', 'email', 'metrics', 'smtp_transport']
