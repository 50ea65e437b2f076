"""sqlcaller — raw SQL facade with typed result decoding and array encoding.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
