"""
Test suite for the product option model

Contains:
- tests/unit/          : Unit tests for individual modules
"""
