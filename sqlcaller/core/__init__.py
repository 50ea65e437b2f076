"""Core Layer — pure logic for codecs, bind substitution, bindings and delegation.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - No database IO happens in core/

Design Decisions:
    - Functional core separated from the imperative shell (services/, infrastructure/)
"""
