"""Pydantic Schemas: response shapes for API endpoints.

Inbound bodies are classified by core/payload_decoder.py rather than a
pydantic model, so the error categories stay exact.
"""
