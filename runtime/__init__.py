"""
Runtime package for the inquiry relay server.

This package contains:
- API layer (FastAPI server + SSE routes)
- Agents (poll chain orchestration + session lifecycle)
- Stores (session registry, per-session event channels)
- Models (Pydantic request / response schemas)
"""
