"""
Custom exceptions for the scoring system with user-friendly error messages.
"""

class LeaderboardException(Exception):
    """Base exception for leaderboard-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class ScoringConfigError(LeaderboardException):
    """Raised when a scoring configuration is incomplete or violates its invariants."""
    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(
            f"Invalid scoring configuration at '{field}': {reason}",
            f"❌ Scoring setting `{field}` {reason}."
        )

class ParticipantNotFoundError(LeaderboardException):
    """Raised when a participant does not exist."""
    def __init__(self, identifier):
        super().__init__(
            f"Participant '{identifier}' not found",
            f"❌ Participant '{identifier}' is not registered in the competition!"
        )

class ChallengeNotFoundError(LeaderboardException):
    """Raised when a game (challenge) does not exist."""
    def __init__(self, identifier):
        super().__init__(
            f"Game '{identifier}' not found",
            f"❌ Game '{identifier}' does not exist!"
        )

class ScoreNotFoundError(LeaderboardException):
    """Raised when a score record does not exist."""
    def __init__(self, score_id):
        super().__init__(
            f"Score {score_id} not found",
            f"❌ Score #{score_id} could not be found."
        )

class ScoreValidationError(LeaderboardException):
    """Raised when submitted score data fails validation."""
    def __init__(self, value, reason: str):
        super().__init__(
            f"Invalid score value {value!r}: {reason}",
            f"❌ {reason}"
        )

class DatabaseError(LeaderboardException):
    """Raised when database operations fail."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "❌ Database error occurred. Please try again later."
        )
