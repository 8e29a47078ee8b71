"""
Pydantic models used by the inquiry relay runtime.

- api_models: HTTP request/response schemas

Domain events live in core.polling.models.
"""
