"""API Layer: FastAPI routes, middleware and error handlers.

Invariants:
    - Routers registered explicitly in main.create_app (no auto-discovery)
    - All error responses share the envelope from core/errors.py

Design Decisions:
    - Thin routes delegate classification to core/ and persistence to the repository
"""
