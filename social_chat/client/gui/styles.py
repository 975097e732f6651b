"""Shared style constants for the GUI client."""

SIDEBAR_BG = "#1f2933"
PRIMARY_BG = "#f5f7fa"
CARD_BG = "#ffffff"
CARD_BORDER = "#d1d5db"
ACCENT = "#3b82f6"
ACCEPTED = "#22c55e"
LIVE_OFF = "#d1d5db"
TEXT_PRIMARY = "#1f2933"
TEXT_MUTED = "#6b7280"
SKELETON = "#e5e7eb"
PADDING = 8
BORDER_RADIUS = 6
CARD_RADIUS = 12
AVATAR_SIZE = 36
TOAST_TIMEOUT_MS = 3000
