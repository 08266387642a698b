"""Workspace configuration (``dotrepo.json``) loading and creation."""

from __future__ import annotations

from functools import partial
from pathlib import Path

from anyio import to_thread
from loguru import logger
from pydantic import ValidationError

from dotrepo.models.config import Configuration
from dotrepo.utils import atomic_write, read_file

CONFIG_FILE_NAME = "dotrepo.json"


class ConfigurationError(ValueError):
    """Raised when the workspace configuration is missing or invalid."""


async def load_configuration(root: str | Path, file_name: str = CONFIG_FILE_NAME) -> Configuration:
    """Read the workspace configuration.  Raises ``ConfigurationError`` if missing or invalid."""
    path = Path(root) / file_name
    if not await to_thread.run_sync(path.exists):
        msg = f"Configuration file not found at {path}"
        raise ConfigurationError(msg)

    raw = await to_thread.run_sync(partial(read_file, path))
    try:
        return Configuration.model_validate_json(raw)
    except ValidationError as exc:
        msg = f"Invalid configuration file {path}: {exc}"
        raise ConfigurationError(msg) from None


async def save_configuration(root: str | Path, config: Configuration, file_name: str = CONFIG_FILE_NAME) -> None:
    path = Path(root) / file_name
    data = config.model_dump_json(indent=2, exclude_none=True) + "\n"
    await to_thread.run_sync(partial(atomic_write, path, data))


async def create_sample_configuration(root: str | Path, file_name: str = CONFIG_FILE_NAME) -> bool:
    """Write a starter configuration unless one exists.  Returns ``True`` if written."""
    path = Path(root) / file_name
    if await to_thread.run_sync(path.exists):
        logger.info('The file "{}" already exists, skipping creation', file_name)
        return False

    await save_configuration(root, Configuration(version="0.0.0", packages=["packages/*"]), file_name)
    logger.info("Created {}", path)
    return True
