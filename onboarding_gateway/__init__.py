"""Onboarding Gateway — forms provider to Stripe Connect and Bubble glue service."""

__version__ = "1.0.0"
