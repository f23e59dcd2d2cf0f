"""ASGI entrypoint for the Telegram to PhotoPrism bridge."""

from photoprism_bridge.api.app import create_app
from photoprism_bridge.containers import build_container

app = create_app(build_container())
