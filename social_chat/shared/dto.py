"""Types shared by the server and the client."""
import enum

# Polling period of the messages panel while live updates are on.
LIVE_UPDATE_INTERVAL_MS = 1000


class FriendStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
