"""
Core domain models, integer fee math, errors and payload contracts.

This module contains the foundational building blocks that are independent
of external systems (custody, pricing, token transfer services).
"""
