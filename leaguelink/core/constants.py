"""Global constants for the leaguelink application."""

# Collections
USERS_COLLECTION = "users"
CHANNELS_COLLECTION = "channels"
TOURNAMENTS_COLLECTION = "tournaments"
MATCHES_COLLECTION = "matches"

FIRESTORE_BATCH_LIMIT = 400

# Match states
MATCH_PENDING = "pending"
MATCH_IN_PROGRESS = "in_progress"
MATCH_COMPLETED = "completed"
TEAM_KEYS = ("team1", "team2")

# Tournament states
TOURNAMENT_PENDING = "pending"
TOURNAMENT_ACTIVE = "active"
TOURNAMENT_COMPLETED = "completed"
TOURNAMENT_STATUSES = (TOURNAMENT_PENDING, TOURNAMENT_ACTIVE, TOURNAMENT_COMPLETED)

TOURNAMENT_FORMATS = (
    "single_elimination",
    "double_elimination",
    "round_robin",
    "swiss",
)

# Participant states
PARTICIPANT_ACCEPTED = "accepted"

# Validation limits
MIN_CHANNEL_NAME_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 10
MIN_PASSCODE_LENGTH = 6
MIN_TOURNAMENT_NAME_LENGTH = 3
MIN_PARTICIPANTS = 2

GUEST_KEY_PREFIX = "guest:"

ALLOWED_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "webp"}
