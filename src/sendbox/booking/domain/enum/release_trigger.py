from enum import Enum


class ReleaseTrigger(str, Enum):
    """資金解放のきっかけ"""

    CONFIRMATION = "confirmation"
    AUTO_RELEASE = "auto_release"
