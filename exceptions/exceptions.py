"""
Custom exceptions for the inquiry relay.

These exceptions are intentionally simple and descriptive.
They are used across:

  - core/api/       (external inquiry client)
  - core/polling/   (delay schedule + poll orchestrator)
  - runtime/        (session registry, event channels, HTTP routes)

Placing them at the project root (exceptions/) avoids circular imports
and keeps exception types consistent across modules.
"""


class SessionNotFoundException(Exception):
    """
    Raised when a start is requested for a session id that has no
    registered event channel.

    No external call is made when this is raised. The HTTP layer maps it
    to a 400 response.
    """

    def __init__(self, session_id):
        self.session_id = session_id
        msg = f"SSE session not found for sessionId: {session_id}"
        super().__init__(msg)


class ChainAlreadyActiveException(Exception):
    """
    Raised when a start is requested for a session whose previous poll
    chain has not reached a terminal state yet.
    """

    def __init__(self, session_id, tracking_id):
        self.session_id = session_id
        self.tracking_id = tracking_id
        msg = (
            f"A poll chain is already running for sessionId: {session_id} "
            f"(trackingId: {tracking_id})"
        )
        super().__init__(msg)


class ExternalCallException(Exception):
    """
    Raised when a call to the external inquiry API fails.

    `status_code` is set when the API answered with an error response and
    is None for transport-level failures (connection refused, timeout...).
    """

    def __init__(self, operation, detail, status_code=None):
        self.operation = operation
        self.detail = detail
        self.status_code = status_code
        if status_code is not None:
            msg = f"{operation} call failed with HTTP {status_code}: {detail}"
        else:
            msg = f"{operation} call failed: {detail}"
        super().__init__(msg)


class ConfigParseFailure(Exception):
    """
    Raised when the polling interval text cannot be parsed.

    Example:
        '5,10,20,30'  ← expected
        '5,ten,20'    ← raises this exception (token 'ten')
    """

    def __init__(self, raw_text, token):
        self.raw_text = raw_text
        self.token = token
        msg = f"Invalid polling interval {token!r} in {raw_text!r}"
        super().__init__(msg)


class ChannelAlreadyConsumedException(Exception):
    """Raised when a second consumer tries to drain the same event channel."""

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Event channel for sessionId {session_id} already has a consumer")
