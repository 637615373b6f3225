"""
Test suite for token-sale-ledger

Contains:
- tests/unit/          : Unit tests for individual modules and end-to-end campaign flows
"""
