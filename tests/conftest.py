"""Shared test fixtures."""

import hashlib
import json
import re
from dataclasses import dataclass, field
from pathlib import Path

import httpx
import pytest

from photoprism_bridge.adapters.photoprism_client import HttpxPhotoPrismClient
from photoprism_bridge.adapters.telegram_client import TelegramClient
from photoprism_bridge.adapters.telegram_file_client import TelegramFileClient
from photoprism_bridge.config import Settings, parse_tags
from photoprism_bridge.containers import AppContainer
from photoprism_bridge.services.labels import LabelService
from photoprism_bridge.services.media import MediaUploadHandler
from photoprism_bridge.services.tagging import TagCallbackHandler
from photoprism_bridge.services.uploads import UploadService

CHAT_ID = 4242


@dataclass
class FakePhotoPrism:
    """In-memory PhotoPrism API served through httpx.MockTransport."""

    username: str = "admin"
    password: str = "insecure"
    user_uid: str = "uqxc08w3d0ej2283"
    next_photo_uid: str = "abc123"
    upload_status: int = 200
    index_status: int = 200
    label_status: int = 200
    search_status: int = 200
    omit_session_header: bool = False
    omit_user_uid: bool = False
    index_photos: bool = True
    auth_calls: int = 0
    requests: list[httpx.Request] = field(default_factory=list)
    sessions: list[str] = field(default_factory=list)
    pending_uploads: dict[str, tuple[str, bytes]] = field(default_factory=dict)
    upload_names: list[str] = field(default_factory=list)
    photos: dict[str, dict[str, object]] = field(default_factory=dict)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, session_ttl_seconds: int = 3600) -> HttpxPhotoPrismClient:
        return HttpxPhotoPrismClient.create(
            base_url="http://photoprism.test",
            username="admin",
            password="insecure",
            session_ttl_seconds=session_ttl_seconds,
            http_client=httpx.AsyncClient(transport=self.transport()),
        )

    def requests_to(self, method: str, suffix: str) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method and request.url.path.endswith(suffix)
        ]

    def label_requests(self) -> list[httpx.Request]:
        return self.requests_to("POST", "/label")

    def add_photo(self, uid: str, content: bytes) -> None:
        self.photos[uid] = {
            "hash": hashlib.sha1(content).hexdigest(),  # noqa: S324
            "labels": [],
        }

    def handler(self, request: httpx.Request) -> httpx.Response:  # noqa: PLR0911
        self.requests.append(request)
        path = request.url.path
        if path == "/api/v1/session" and request.method == "POST":
            return self._session(request)
        if request.headers.get("X-Session-ID") not in self.sessions:
            return httpx.Response(401, json={"error": "Unauthorized"})
        upload = re.fullmatch(r"/api/v1/users/([^/]+)/upload/([^/]+)", path)
        if upload and request.method == "POST":
            return self._upload(request, upload.group(2))
        if upload and request.method == "PUT":
            return self._index(upload.group(2))
        if path == "/api/v1/photos" and request.method == "GET":
            return self._search(request)
        label = re.fullmatch(r"/api/v1/photos/([^/]+)/label", path)
        if label and request.method == "POST":
            return self._add_label(request, label.group(1))
        photo = re.fullmatch(r"/api/v1/photos/([^/]+)", path)
        if photo and request.method == "GET" and photo.group(1) in self.photos:
            labels = self.photos[photo.group(1)]["labels"]
            return httpx.Response(
                200,
                json={
                    "UID": photo.group(1),
                    "Labels": [{"Label": {"Name": name}} for name in labels],
                },
            )
        return httpx.Response(404, json={"error": "Not found"})

    def _session(self, request: httpx.Request) -> httpx.Response:
        self.auth_calls += 1
        credentials = json.loads(request.content)
        if credentials != {"username": self.username, "password": self.password}:
            return httpx.Response(401, json={"error": "Invalid credentials"})
        session_id = f"session-{self.auth_calls}"
        self.sessions.append(session_id)
        headers = {} if self.omit_session_header else {"X-Session-ID": session_id}
        user = {} if self.omit_user_uid else {"UID": self.user_uid}
        return httpx.Response(200, headers=headers, json={"user": user})

    def _upload(self, request: httpx.Request, token: str) -> httpx.Response:
        if self.upload_status != 200:
            return httpx.Response(self.upload_status, text="upload rejected")
        file_name, content = _parse_multipart_file(request)
        self.upload_names.append(file_name)
        self.pending_uploads[token] = (file_name, content)
        return httpx.Response(200, json={"code": 200})

    def _index(self, token: str) -> httpx.Response:
        if self.index_status != 200:
            return httpx.Response(self.index_status, text="indexing failed")
        _, content = self.pending_uploads.pop(token)
        if self.index_photos:
            self.add_photo(self.next_photo_uid, content)
        return httpx.Response(200, json={"code": 200})

    def _search(self, request: httpx.Request) -> httpx.Response:
        if self.search_status != 200:
            return httpx.Response(self.search_status, json={"error": "boom"})
        query = request.url.params["q"]
        file_hash = query.rsplit("hash:", maxsplit=1)[-1]
        matches = [
            {"UID": uid, "Hash": photo["hash"]}
            for uid, photo in self.photos.items()
            if photo["hash"] == file_hash
        ]
        return httpx.Response(200, json=matches[:1])

    def _add_label(self, request: httpx.Request, uid: str) -> httpx.Response:
        if self.label_status != 200:
            return httpx.Response(self.label_status, json={"error": "label failed"})
        if uid not in self.photos:
            return httpx.Response(404, json={"error": "Photo not found"})
        body = json.loads(request.content)
        labels = self.photos[uid]["labels"]
        if body["Name"] not in labels:
            labels.append(body["Name"])
        return httpx.Response(200, json={"UID": uid})


def _parse_multipart_file(request: httpx.Request) -> tuple[str, bytes]:
    boundary = request.headers["content-type"].split("boundary=")[1].encode()
    for part in request.content.split(b"--" + boundary):
        head, separator, body = part.partition(b"\r\n\r\n")
        if not separator:
            continue
        match = re.search(rb'filename="([^"]+)"', head)
        if match:
            return match.group(1).decode(), body[:-2]
    raise AssertionError("multipart request without a file part")


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records messages."""

    messages: list[tuple[int, str, int | None, dict | None]] = field(
        default_factory=list
    )
    edits: list[tuple[int, int, str, dict | None]] = field(default_factory=list)
    markup_edits: list[tuple[int, int, dict]] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    next_message_id: int = 1000

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_to_message_id: int | None = None,
        reply_markup: dict | None = None,
    ) -> int:
        self.messages.append((chat_id, text, reply_to_message_id, reply_markup))
        self.next_message_id += 1
        return self.next_message_id

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
    ) -> None:
        self.edits.append((chat_id, message_id, text, reply_markup))

    async def edit_message_reply_markup(
        self, chat_id: int, message_id: int, reply_markup: dict
    ) -> None:
        self.markup_edits.append((chat_id, message_id, reply_markup))

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        self.callbacks.append((callback_query_id, text))


@dataclass
class FakeTelegramFileClient(TelegramFileClient):
    """Fake Telegram file client that writes static bytes to disk.

    With local_server_dir set it behaves like a Bot API server in local mode
    and stores files there instead of in the working directory.
    """

    content: bytes = b"fake-image-bytes"
    local_server_dir: Path | None = None
    downloaded: list[Path] = field(default_factory=list)

    async def download_file(self, file_id: str, working_dir: Path) -> Path:
        directory = self.local_server_dir or working_dir
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{file_id}.jpg"
        path.write_bytes(self.content)
        self.downloaded.append(path)
        return path


@pytest.fixture
def photoprism() -> FakePhotoPrism:
    return FakePhotoPrism()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        telegram_chat_id=CHAT_ID,
        tags="Han,Luke,Vader",
        photoprism_url="http://photoprism.test",
        photoprism_username="admin",
        photoprism_password="insecure",
        working_dir=str(tmp_path),
        environment="test",
    )


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def telegram_file_client() -> FakeTelegramFileClient:
    return FakeTelegramFileClient()


@pytest.fixture
def container(
    settings: Settings,
    photoprism: FakePhotoPrism,
    telegram_client: FakeTelegramClient,
    telegram_file_client: FakeTelegramFileClient,
) -> AppContainer:
    tags = parse_tags(settings.tags)
    photoprism_client = photoprism.client()
    upload_service = UploadService(photoprism_client)
    label_service = LabelService(photoprism_client)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        telegram_file_client=telegram_file_client,
        upload_service=upload_service,
        label_service=label_service,
        media_handler=MediaUploadHandler(
            telegram_client=telegram_client,
            telegram_file_client=telegram_file_client,
            upload_service=upload_service,
            working_dir=Path(settings.working_dir),
            tags=tags,
            disallow_compressed_files=settings.disallow_compressed_files,
        ),
        tag_callback_handler=TagCallbackHandler(
            telegram_client=telegram_client,
            label_service=label_service,
            tags=tags,
        ),
        close_resources=close_resources,
    )
