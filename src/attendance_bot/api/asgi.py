"""ASGI entrypoint for the attendance bot API."""

from attendance_bot.api.app import create_app
from attendance_bot.containers import build_container

app = create_app(build_container())
