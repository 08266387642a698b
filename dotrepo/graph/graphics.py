"""Rendering links for mermaid diagrams via mermaid.ink.

The diagram text is base64url-encoded into the URL path; mermaid.ink
renders it as an image (``/img/``) or SVG (``/svg/``).
"""

from __future__ import annotations

import base64
from functools import partial
from pathlib import Path

import httpx
from anyio import to_thread
from loguru import logger

VISUALIZATION_BASE_URL = "https://mermaid.ink/img/"


def encode_graph(diagram: str) -> str:
    """Encode a diagram for use in a mermaid.ink URL."""
    return base64.urlsafe_b64encode(diagram.encode("utf-8")).decode("ascii")


def generate_visualization_url(diagram: str) -> str:
    return f"{VISUALIZATION_BASE_URL}{encode_graph(diagram)}"


def get_graph_image_url(diagram: str) -> str:
    """Link to the SVG rendering, suitable for printing to a terminal."""
    return generate_visualization_url(diagram).replace("/img/", "/svg/")


async def save_graph_image(
    diagram: str,
    path: str | Path,
    *,
    client: httpx.AsyncClient | None = None,
) -> Path:
    """Download the rendered diagram to ``path``.

    A temporary client is created if none is provided.  Raises
    ``httpx.HTTPStatusError`` if the rendering service rejects the diagram.
    """
    target = Path(path)
    own_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=30.0)

    try:
        response = await client.get(generate_visualization_url(diagram), follow_redirects=True)
        response.raise_for_status()
    finally:
        if own_client:
            await client.aclose()

    await to_thread.run_sync(partial(target.parent.mkdir, parents=True, exist_ok=True))
    await to_thread.run_sync(target.write_bytes, response.content)
    logger.debug("Saved graph image to {} ({} bytes)", target, len(response.content))
    return target
