"""ASGI entrypoint for the inventory counting API."""

from inventory_counting.api.app import create_app
from inventory_counting.containers import build_container

app = create_app(build_container())
