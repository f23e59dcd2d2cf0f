"""Domain models for the tag selection keyboard."""

from dataclasses import dataclass, field

NO_ANCHOR = -1
SAVE_ANCHOR = -2


@dataclass(frozen=True)
class TagSelectionState:
    """In-progress tag choices for one photo, carried in callback data."""

    photo_uid: str
    anchor: int = NO_ANCHOR
    selected: frozenset[int] = field(default_factory=frozenset)

    @property
    def is_save(self) -> bool:
        return self.anchor == SAVE_ANCHOR


@dataclass(frozen=True)
class SaveTags:
    """Terminal step: commit the selected tags to the photo."""

    photo_uid: str
    tag_names: list[str]


@dataclass(frozen=True)
class UpdateKeyboard:
    """Intermediate step: show a keyboard reflecting the new selection."""

    state: TagSelectionState
    reply_markup: dict
