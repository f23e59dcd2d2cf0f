"""Stateless tag selection keyboard.

The whole selection travels in the callback data of each button, so a
callback can be handled by a process that never saw the earlier steps.
"""

import json
from collections.abc import Sequence

from pydantic import BaseModel, Field, ValidationError

from photoprism_bridge.domain.tags import (
    NO_ANCHOR,
    SAVE_ANCHOR,
    SaveTags,
    TagSelectionState,
    UpdateKeyboard,
)
from photoprism_bridge.errors import InvalidSelectionIndex, InvalidSelectionPayload

CHECK_MARK = "✓"
TAGS_PER_ROW = 3
DEFAULT_SAVE_TEXT = "Save"


class _TagKeyboardPayload(BaseModel):
    """Wire format of the callback data."""

    id: int
    values: list[int] = Field(default_factory=list)
    photo_uid: str = Field(min_length=1)


def initial_state(photo_uid: str) -> TagSelectionState:
    """Return the state shown right after a successful upload."""
    return TagSelectionState(photo_uid=photo_uid, anchor=NO_ANCHOR)


def encode_state(state: TagSelectionState) -> str:
    """Serialize a selection state into callback data."""
    payload = {
        "id": state.anchor,
        "values": sorted(state.selected),
        "photo_uid": state.photo_uid,
    }
    return json.dumps(payload, separators=(",", ":"))


def decode_state(payload: str) -> TagSelectionState:
    """Parse callback data produced by encode_state."""
    try:
        parsed = _TagKeyboardPayload.model_validate_json(payload)
    except ValidationError as exc:
        raise InvalidSelectionPayload(payload) from exc
    return TagSelectionState(
        photo_uid=parsed.photo_uid,
        anchor=parsed.id,
        selected=frozenset(parsed.values),
    )


def toggle(state: TagSelectionState, tag_count: int) -> TagSelectionState:
    """Flip membership of the anchor tag in the selection."""
    if state.anchor >= tag_count:
        raise InvalidSelectionIndex(state.anchor, tag_count)
    _check_bounds(state.selected, tag_count)
    if state.anchor in state.selected:
        selected = state.selected - {state.anchor}
    elif state.anchor >= 0:
        selected = state.selected | {state.anchor}
    else:
        selected = state.selected
    return TagSelectionState(
        photo_uid=state.photo_uid, anchor=state.anchor, selected=selected
    )


def resolve_tags(state: TagSelectionState, tags: Sequence[str]) -> list[str]:
    """Map selected indices to tag names in configured order."""
    _check_bounds(state.selected, len(tags))
    return [tags[index] for index in sorted(state.selected)]


def render_keyboard(
    state: TagSelectionState,
    tags: Sequence[str],
    save_text: str = DEFAULT_SAVE_TEXT,
) -> dict:
    """Build an inline keyboard for the current selection."""
    rows: list[list[dict[str, str]]] = []
    for row_start in range(0, len(tags), TAGS_PER_ROW):
        row = []
        for index in range(row_start, min(row_start + TAGS_PER_ROW, len(tags))):
            tag = tags[index]
            text = f"{tag}{CHECK_MARK}" if index in state.selected else tag
            payload = encode_state(_with_anchor(state, index))
            row.append({"text": text, "callback_data": payload})
        rows.append(row)
    rows.append(
        [
            {
                "text": save_text,
                "callback_data": encode_state(_with_anchor(state, SAVE_ANCHOR)),
            }
        ]
    )
    return {"inline_keyboard": rows}


def apply_toggle(
    payload: str,
    tags: Sequence[str],
    save_text: str = DEFAULT_SAVE_TEXT,
) -> SaveTags | UpdateKeyboard:
    """Decide the next step for a pressed tag keyboard button."""
    state = decode_state(payload)
    if state.is_save:
        return SaveTags(photo_uid=state.photo_uid, tag_names=resolve_tags(state, tags))
    updated = toggle(state, len(tags))
    return UpdateKeyboard(
        state=updated, reply_markup=render_keyboard(updated, tags, save_text)
    )


def _with_anchor(state: TagSelectionState, anchor: int) -> TagSelectionState:
    return TagSelectionState(
        photo_uid=state.photo_uid, anchor=anchor, selected=state.selected
    )


def _check_bounds(selected: frozenset[int], tag_count: int) -> None:
    for index in sorted(selected):
        if index < 0 or index >= tag_count:
            raise InvalidSelectionIndex(index, tag_count)
