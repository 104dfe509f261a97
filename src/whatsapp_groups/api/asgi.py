"""ASGI entrypoint for the WhatsApp group provisioning API."""

from whatsapp_groups.api.app import create_app
from whatsapp_groups.containers import build_container

app = create_app(build_container())
