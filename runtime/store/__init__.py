"""
Storage abstractions for the inquiry relay runtime.

Includes:
- SessionRegistry: in-memory, thread-safe session_id -> EventChannel mapping
- EventChannel: per-session FIFO buffer drained by one SSE consumer
"""
