"""Domain models for PhotoPrism photos and sessions."""

from dataclasses import dataclass

DEFAULT_LABEL_PRIORITY = 10


@dataclass(frozen=True)
class PhotoPrismSession:
    """Authenticated PhotoPrism session."""

    session_id: str
    user_uid: str


@dataclass(frozen=True)
class PhotoUID:
    """Backend-assigned identifier of a stored photo."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Label:
    """Label assignment sent to PhotoPrism."""

    name: str
    priority: int = DEFAULT_LABEL_PRIORITY

    def to_payload(self) -> dict[str, object]:
        """Return the PascalCase body expected by the labels endpoint."""
        return {"Name": self.name, "Priority": self.priority}
