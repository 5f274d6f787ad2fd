"""Configuration for GraphiteTrust."""

from graphite_trust.config.settings import GraphiteSettings

__all__ = ["GraphiteSettings"]
