"""Pydantic request/response schemas for the Plugstore API."""
