"""
Bot-wide constants for the scoreboard bot.
"""

class PaginationConstants:
    """Constants for paginated displays."""

    # Default page size for leaderboards
    DEFAULT_PAGE_SIZE = 10

    # Entries listed per category in the statistics embed
    TOP_PER_CATEGORY = 8

    # Seconds before interactive views stop responding
    VIEW_TIMEOUT = 900

class UIConstants:
    """Constants for Discord UI elements."""

    # Embed colors
    DEFAULT_EMBED_COLOR = 0x3498db  # Blue
    GOLD_RANK_COLOR = 0xffd700     # Gold for the leader
    ERROR_COLOR = 0xe74c3c         # Red for errors
    SUCCESS_COLOR = 0x2ecc71       # Green for success

    # Emoji for UI elements
    TROPHY_EMOJI = "🏆"
    PHYSICAL_EMOJI = "🏃"
    MENTAL_EMOJI = "🧠"
    EXTRAS_EMOJI = "⭐"

    # Width of participant names in the table
    NAME_WIDTH = 16
