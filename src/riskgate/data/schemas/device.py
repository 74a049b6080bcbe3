"""DeviceRegistration schema - canonical definition."""

from datetime import datetime
from pydantic import BaseModel, Field


class DeviceRegistration(BaseModel):
    """One sighting of a user on a device.

    The registry as a whole is a many-to-many relation keyed by
    (device_token, user_id). device_token is a first-party cookie value,
    never a fingerprint.
    """
    device_token: str = Field(..., description="First-party device token")
    user_id: str = Field(..., description="User seen on this device")
    last_seen_at: datetime = Field(..., description="Most recent sighting")
    ua_family: str = Field(default="unknown", description="Client class")
    os_family: str = Field(default="unknown", description="Operating system family")
    browser_family: str = Field(default="unknown", description="Browser family")

    model_config = {
        "json_schema_extra": {
            "example": {
                "device_token": "k3Jx0d5w2m6Qv8nH1cR4tY7uB9eA0fZ_",
                "user_id": "user_abc123",
                "last_seen_at": "2026-01-28T14:30:05Z",
                "ua_family": "desktop",
                "os_family": "windows",
                "browser_family": "chrome",
            }
        }
    }
