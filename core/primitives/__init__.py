"""
POS Core Primitives
====================
Shared value types consumed by every engine.

Primitives:
    money  — fixed-point currency amount (2 dp, half-up)
    refs   — identity of entities owned by collaborators
"""
