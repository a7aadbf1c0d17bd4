"""Push event type constants.

Every server → client frame on /ws is a JSON object whose "type" is one
of these. Clients treat chat events as hints to re-fetch, never as state.
"""

# ─── Chat mutations (broadcast to every live channel) ────

MESSAGE_CREATED = "message_created"
MESSAGES_CLEARED = "messages_cleared"
AUTHOR_MESSAGES_REMOVED = "author_messages_removed"

CHAT_EVENTS = frozenset({MESSAGE_CREATED, MESSAGES_CLEARED, AUTHOR_MESSAGES_REMOVED})

# ─── Channel lifecycle / liveness ────────────────────────

CONNECTED = "connected"  # sent once per new channel
PING = "ping"  # client → server
PONG = "pong"  # server → client
