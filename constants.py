# Court Constants
SINGLES_PLAYERS_PER_TEAM = 1
DOUBLES_PLAYERS_PER_TEAM = 2

# Session Constants
DEFAULT_NUM_COURTS = 2
DEFAULT_BALANCE_GENDER = True
PLAYER_ID_LENGTH = 8
SESSION_ID_LENGTH = 10
DELETED_PLAYER_NAME = "(deleted)"

# Optimizer Weights (lower score is better)
FAIRNESS_WEIGHT = 1  # per game already played
REPEAT_WEIGHT = 1000  # per earlier shared game between two candidates
REST_WEIGHT = 2000  # per consecutive game just played
GENDER_IMBALANCE_PENALTY = 500

# Optimizer Candidate Caps (least-played players considered)
SINGLES_CANDIDATE_CAP = 10
DOUBLES_CANDIDATE_CAP = 8

# Persistence Constants
DEFAULT_SESSIONS_DIR = "sessions"
SESSIONS_DIR_ENV = "BADMINTON_SESSIONS_DIR"
SESSIONS_TABLE = "sessions"
