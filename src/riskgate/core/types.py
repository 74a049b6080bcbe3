"""Core types and enums."""

from enum import Enum


class Action(str, Enum):
    """Disposition for the triggering action."""
    ALLOW = "allow"
    STEP_UP = "step_up"
    HOLD = "hold"
    BLOCK = "block"


class EventType(str, Enum):
    """Security-sensitive actions that can be scored."""
    LOGIN = "login"
    SIGNUP = "signup"
    REWARD_REDEEM = "reward_redeem"
    PAYMENT = "payment"
    PROFILE_EDIT = "profile_edit"
    PASSWORD_CHANGE = "password_change"


class ReasonCode(str, Enum):
    """Machine-readable reason codes, one per firing signal tier."""
    NEW_ACCOUNT = "new_account"
    YOUNG_ACCOUNT = "young_account"
    DEVICE_SHARED = "device_shared"
    DEVICE_MULTI_USER = "device_multi_user"
    HIGH_VELOCITY = "high_velocity"
    ELEVATED_VELOCITY = "elevated_velocity"
    DAILY_LIMIT_EXCEEDED = "daily_limit_exceeded"
    HIGH_DAILY_ACTIVITY = "high_daily_activity"
    MANY_DEVICES = "many_devices"
    MANY_IPS = "many_ips"
    TYPING_ANOMALY = "typing_anomaly"
    TYPING_VARIATION = "typing_variation"
    NORMAL_BEHAVIOR = "normal_behavior"
