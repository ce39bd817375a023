"""Pydantic schemas for the HTTP API and the analysis engine wire format."""
