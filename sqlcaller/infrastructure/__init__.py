"""Infrastructure Layer — database engine, connections and logging setup.

Invariants:
    - Infrastructure never imports from services/
    - Driver exceptions pass through unchanged
"""
