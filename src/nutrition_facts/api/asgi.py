"""ASGI entrypoint for the nutrition facts API."""

from nutrition_facts.api.app import create_app
from nutrition_facts.containers import build_container

app = create_app(build_container())
