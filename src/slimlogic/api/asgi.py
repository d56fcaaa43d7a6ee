"""ASGI entrypoint for the SlimLogic API."""

from slimlogic.api.app import create_app
from slimlogic.containers import build_container

app = create_app(build_container())
