from dataclasses import dataclass


@dataclass(frozen=True)
class AnnouncementId:
    """アナウンスID"""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("AnnouncementId cannot be empty")
        if "#" in self.value:
            raise ValueError(f"AnnouncementId must not contain '#': {self.value}")

    def __str__(self) -> str:
        return self.value
