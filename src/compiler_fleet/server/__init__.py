"""HTTP publication of the compiler registry."""

from .app import client_options, create_app, render_client_options

__all__ = ["client_options", "create_app", "render_client_options"]
