"""Core business logic layer.

Subpackages:
- catalog: read-only package views (grouping, limits)
- selection: dish toggle validation per customization policy
- pricing: guest-scaled price computation
- cart: cart reconciliation across the local and remote stores, line edits
"""
__all__ = ["catalog", "selection", "pricing", "cart"]
