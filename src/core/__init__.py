"""
Core domain models, money primitives, and JSON contracts.

This module contains the foundational building blocks that are independent
of external systems (databases, HTTP layers, etc.).
"""
