"""ASGI entrypoint for the matchmaker API."""

from matchmaker.api.app import create_app
from matchmaker.containers import build_container

app = create_app(build_container())
