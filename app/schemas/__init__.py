"""
schemas/ — Pydantic request/response models for the Scout API

ICP weights and bucket validation, triage requests, candidate views,
enrichment results and the shared ErrorResponse body.
"""
