"""Services Layer — facades that run SQL through a bound model.

Invariants:
    - Services depend on core/ contracts, never on a concrete driver
"""
