"""
Publication of the compiler registry.

- GET /api/compilers      registry as JSON (what other instances fetch)
- GET /client-options.js  client configuration, ``var OPTIONS = {...};``

Both bodies are rendered once from the immutable registry.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from aiohttp import web

from ..config.fields import PropertySource, as_bool
from ..core.types import CompilerRegistry
from ..discovery.remote import COMPILERS_PATH

logger = logging.getLogger(__name__)

REGISTRY_KEY = web.AppKey("registry", CompilerRegistry)

DEFAULT_ANALYTICS_ACCOUNT = "UA-55180-6"


def _source_extension(compile_filename: str) -> str:
    _, sep, extension = compile_filename.partition(".")
    return extension if sep else ""


def client_options(registry: CompilerRegistry, props: PropertySource, language: str) -> Dict[str, Any]:
    """Client-side configuration derived from the registry and properties."""
    return {
        "google_analytics_account": str(props.get("clientGoogleAnalyticsAccount", DEFAULT_ANALYTICS_ACCOUNT)),
        "google_analytics_enabled": as_bool(props.get("clientGoogleAnalyticsEnabled", False)),
        "sharing_enabled": as_bool(props.get("clientSharingEnabled", True)),
        "github_ribbon_enabled": as_bool(props.get("clientGitHubRibbonEnabled", True)),
        "urlshortener": str(props.get("clientURLShortener", "google")),
        "gapiKey": str(props.get("google-api-key", "") or ""),
        "googleShortLinkRewrite": str(props.get("googleShortLinkRewrite", "") or "").split("|"),
        "defaultSource": str(props.get("defaultSource", "") or ""),
        "language": language,
        "compilers": registry.to_json(),
        "defaultCompiler": str(props.get("defaultCompiler", "") or ""),
        "compileOptions": str(props.get("options", "") or ""),
        "supportsBinary": as_bool(props.get("supportsBinary", False)),
        "postProcess": str(props.get("postProcess", "") or ""),
        "sourceExtension": _source_extension(str(props.get("compileFilename", "") or "")),
    }


def render_client_options(options: Dict[str, Any]) -> str:
    return "var OPTIONS = " + json.dumps(options) + ";"


def create_app(registry: CompilerRegistry, props: PropertySource, language: str) -> web.Application:
    """
    Build the aiohttp application publishing ``registry``.
    """
    compilers_body = json.dumps(registry.to_json())
    options_body = render_client_options(client_options(registry, props, language))
    max_age_secs = int(props.get("staticMaxAgeMs", 0)) // 1000

    async def handle_compilers(request: web.Request) -> web.Response:
        return web.Response(text=compilers_body, content_type="application/json")

    async def handle_client_options(request: web.Request) -> web.Response:
        resp = web.Response(text=options_body, content_type="application/javascript")
        resp.headers["Cache-Control"] = f"public, max-age={max_age_secs}"
        return resp

    app = web.Application()
    app[REGISTRY_KEY] = registry
    app.router.add_get(COMPILERS_PATH, handle_compilers)
    app.router.add_get("/client-options.js", handle_client_options)

    logger.debug(f"Publishing {len(registry)} compiler(s) on {COMPILERS_PATH}")
    return app
