"""
Test suite for broker-settlement

Contains:
- tests/unit/     : Unit tests for individual modules and engine scenarios
- tests/harness.py: Settlement engine wired to in-memory collaborators
"""
