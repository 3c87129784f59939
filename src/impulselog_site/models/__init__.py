"""Pydantic models for blog posts, webhook payloads and API envelopes."""
