"""ASGI entrypoint for the wash queue API."""

from washqueue.api.app import create_app
from washqueue.containers import build_container

app = create_app(build_container())
