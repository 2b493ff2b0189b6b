from typing import Final

CART_STORAGE_KEY: Final[str] = "partyfud_cart_items"
LOCAL_ID_PREFIX: Final[str] = "local_"
CUSTOM_PACKAGE_PREFIX: Final[str] = "custom_"
ISO_TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S.%fZ"

# Spelling variants observed in catalog payloads -> canonical policy name
POLICY_ALIASES: Final[dict[str, str]] = {
    "FIXED": "FIXED",
    "CUSTOMIZABLE": "CUSTOMIZABLE",
    "CUSTOMISABLE": "CUSTOMIZABLE",
    "FIXED_WITH_LIMITS": "FIXED_WITH_LIMITS",
    "FIXED-WITH-LIMITS": "FIXED_WITH_LIMITS",
    "FIXEDWITHLIMITS": "FIXED_WITH_LIMITS",
}

UNCATEGORIZED_NAME: Final[str] = "Other"
MAX_RECENT_EVENTS: Final[int] = 300
