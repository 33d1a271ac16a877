from dataclasses import dataclass


@dataclass(frozen=True)
class UserId:
    """利用者ID（送り主・旅行者共通）"""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("UserId cannot be empty")
        if "#" in self.value:
            raise ValueError(f"UserId must not contain '#': {self.value}")

    def __str__(self) -> str:
        return self.value
