"""
Agents used by the inquiry relay runtime.

For now there is a single PollOrchestrator that:

- starts the external inquiry process for a connected session
- polls its status on the configured delay schedule
- pushes classified events to the session's channel
"""
