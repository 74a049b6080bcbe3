"""Centralized constants for RiskGate system configuration."""


# ===== SCORING =====
class ScoreConstants:
    SCORE_MIN = 0
    SCORE_MAX = 100

    # Action tiers, evaluated high to low
    BLOCK_THRESHOLD = 80
    HOLD_THRESHOLD = 60
    STEP_UP_THRESHOLD = 40


# ===== SIGNAL WINDOWS & GATES =====
class SignalConstants:
    SHORT_VELOCITY_WINDOW_SECONDS = 10 * 60
    DAILY_VELOCITY_WINDOW_SECONDS = 24 * 60 * 60

    TYPING_MIN_SAMPLE_SIZE = 5
    TYPING_MIN_BASELINE_COUNT = 10
    TYPING_STD_FLOOR = 1.0

    READ_TIMEOUT_SECONDS = 2.0
    READS_PER_SCORE = 4
    # Matches the default request worker pool (40 threads)
    CONCURRENT_SCORES = 40
    MAX_WORKERS = READS_PER_SCORE * CONCURRENT_SCORES


# ===== DEVICE IDENTITY =====
class DeviceConstants:
    COOKIE_NAME = "__rg_did"
    COOKIE_MAX_AGE_SECONDS = 60 * 60 * 24 * 365
    TOKEN_BYTES = 24  # 192 bits
    TOKEN_MIN_LENGTH = 22
    TOKEN_MAX_LENGTH = 128

    IPV4_PREFIX_LENGTH = 24
    IPV6_PREFIX_LENGTH = 64


# ===== EVENT WRITER =====
class WriterConstants:
    QUEUE_SIZE = 10000
    FLUSH_TIMEOUT_SECONDS = 5.0
    QUEUE_GET_TIMEOUT = 1.0


# ===== FEATURE RECOMPUTATION =====
class FeatureConstants:
    ACTIVE_USER_WINDOW_DAYS = 30
    TYPING_SAMPLE_LIMIT = 50
    TYPING_MIN_SAMPLES = 5


# ===== DATA FORMATS =====
class DataConstants:
    TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
