"""Infrastructure Layer: database access, store implementation, logging setup.

Invariants:
    - Infrastructure imports core/ types and errors, never api/
    - Store failures are mapped to StoreError before leaving this layer
"""
