"""Selector parsing: patterns, rule templates, a rule registry and selector query plans."""

__version__ = "0.1.0"
__all__ = ["node", "pattern", "rule", "selector", "utils"]