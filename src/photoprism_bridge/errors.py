"""Errors raised by the PhotoPrism integration and the tag keyboard."""


class PhotoPrismBridgeError(Exception):
    """Base class for all bridge errors."""


class AuthenticationFailed(PhotoPrismBridgeError):
    """PhotoPrism rejected the configured credentials."""

    def __init__(self, details: str) -> None:
        super().__init__(f"Failed to authenticate at PhotoPrism: {details}")
        self.details = details


class ProtocolError(PhotoPrismBridgeError):
    """A response or payload is missing an expected field."""


class SessionHeaderMissing(ProtocolError):
    """Authentication succeeded but no X-Session-ID header was returned."""

    def __init__(self) -> None:
        super().__init__("X-Session-ID header is missing.")


class MalformedResponse(ProtocolError):
    """A JSON response does not have the expected shape."""

    def __init__(self, message: str, payload: object) -> None:
        super().__init__(f"{message}: {payload}")
        self.payload = payload


class InvalidSelectionPayload(ProtocolError):
    """A tag keyboard callback payload cannot be decoded."""

    def __init__(self, payload: str) -> None:
        super().__init__(f"Invalid tag keyboard payload: {payload!r}")
        self.payload = payload


class TransportError(PhotoPrismBridgeError):
    """Network-level failure while talking to PhotoPrism."""


class UploadFailed(PhotoPrismBridgeError):
    """The multipart upload was rejected."""

    def __init__(self, file: str, details: str) -> None:
        super().__init__(f"Failed to upload file {file} to PhotoPrism: {details}")
        self.file = file
        self.details = details


class IndexingFailed(PhotoPrismBridgeError):
    """PhotoPrism refused to process an uploaded file."""

    def __init__(self, file: str, details: str) -> None:
        super().__init__(f"Failed to index file {file} at PhotoPrism: {details}")
        self.file = file
        self.details = details


class PhotoNotFoundByHash(PhotoPrismBridgeError):
    """The uploaded photo could not be located by its SHA-1."""

    def __init__(self, file_hash: str) -> None:
        super().__init__(
            "Photo has been uploaded and indexed, "
            f"but no photo with hash {file_hash} was found."
        )
        self.file_hash = file_hash


class AddLabelFailed(PhotoPrismBridgeError):
    """PhotoPrism rejected a label assignment."""

    def __init__(self, label: str, photo_uid: str) -> None:
        super().__init__(f"Failed to add label {label} to photo {photo_uid}.")
        self.label = label
        self.photo_uid = photo_uid


class InvalidSelectionIndex(PhotoPrismBridgeError):
    """A selected tag index is outside the configured tag list."""

    def __init__(self, index: int, tag_count: int) -> None:
        super().__init__(f"Tag index {index} is out of range for {tag_count} tags.")
        self.index = index
        self.tag_count = tag_count
