"""Locate and load deal configuration from YAML.

Deals live either in one ``deals.yaml`` file or in a ``deals/`` directory
holding an optional ``_config.yaml`` plus one ``<deal-id>.yaml`` per deal.
"""

import logging
import os
from pathlib import Path
from typing import Any, NamedTuple, Optional

import yaml

from . import constants
from .schema import Deal, DealFile, GlobalConfig

logger = logging.getLogger(__name__)


class DealLocation(NamedTuple):
    """Where deal configuration was found."""

    mode: str  # "dir" or "file"
    path: Path


def _exists_as(path: Path, mode: str) -> bool:
    return path.is_dir() if mode == "dir" else path.is_file()


def find_deals_location() -> Optional[DealLocation]:
    """
    Locate deal configuration (directory or file).

    Search order (highest to lowest priority):
    1. PITISPLIT_DIR environment variable → directory mode
    2. PITISPLIT_FILE environment variable → file mode
    3. deals/ directory in current directory → directory mode
    4. deals.yaml in current directory → file mode

    An environment variable pointing at something that does not exist is
    reported and skipped rather than treated as "no deals".

    Returns:
        DealLocation, or None if nothing was found
    """
    for env_var, mode in (
        (constants.ENV_DEALS_DIR, "dir"),
        (constants.ENV_DEALS_FILE, "file"),
    ):
        value = os.getenv(env_var)
        if not value:
            continue
        path = Path(value)
        if _exists_as(path, mode):
            return DealLocation(mode, path)
        logger.warning(
            "%s=%s is not a deals %s; ignoring it",
            env_var,
            value,
            "directory" if mode == "dir" else "file",
        )

    cwd = Path.cwd()
    for name, mode in (
        (constants.DEFAULT_DEALS_DIR, "dir"),
        (constants.DEFAULT_DEALS_FILE, "file"),
    ):
        path = cwd / name
        if _exists_as(path, mode):
            return DealLocation(mode, path)

    return None


def _read_yaml(path: Path) -> Any:
    with path.open() as f:
        return yaml.safe_load(f)


def load_deal_from_file(filepath: Path) -> Optional[Deal]:
    """
    Load one deal from a ``<deal-id>.yaml`` file in a deals directory.

    The file name is the deal's id. A file may omit ``id`` entirely, in which
    case it is taken from the file name; an explicit ``id`` must agree with it.

    Args:
        filepath: Path to the deal file

    Returns:
        Deal, or None if the file is empty or invalid

    Note:
        Problems are logged, not raised, so one bad deal does not hide the
        rest of the directory.
    """
    try:
        raw = _read_yaml(filepath)
    except yaml.YAMLError as e:
        logger.error("Skipping deal file %s: not valid YAML (%s)", filepath, e)
        return None

    if raw is None:
        logger.warning("Skipping empty deal file %s", filepath)
        return None
    if not isinstance(raw, dict):
        logger.error("Skipping deal file %s: expected a mapping of deal fields", filepath)
        return None

    deal_id = str(raw.setdefault("id", filepath.stem))
    if deal_id != filepath.stem:
        logger.error(
            "Skipping deal file %s: it declares id '%s', but deal files are named "
            "after their id (rename it to %s.yaml or drop the id field)",
            filepath,
            deal_id,
            deal_id,
        )
        return None

    try:
        deal = Deal(**raw)
    except ValueError as e:
        logger.error("Skipping deal '%s' in %s: %s", deal_id, filepath, e)
        return None

    deal.source_file = filepath
    return deal


def _load_directory_config(dirpath: Path) -> GlobalConfig:
    config_path = dirpath / constants.CONFIG_FILENAME
    if not config_path.is_file():
        return GlobalConfig()

    try:
        return GlobalConfig(**(_read_yaml(config_path) or {}))
    except (yaml.YAMLError, ValueError, TypeError) as e:
        logger.warning("Ignoring %s (%s); using default settings", config_path, e)
        return GlobalConfig()


def load_deals_from_directory(dirpath: Path) -> DealFile:
    """
    Load every deal in a deals directory.

    Directory structure:
        deals/
        ├── _config.yaml      # Accounts, currency, tolerance (optional)
        ├── maple-duplex.yaml # One file per deal, named after its id
        └── ...

    Args:
        dirpath: Path to deals directory

    Returns:
        DealFile with the deals that loaded cleanly
    """
    config = _load_directory_config(dirpath)

    deal_paths = [
        p
        for p in sorted(dirpath.glob(constants.DEAL_FILE_PATTERN))
        if p.name != constants.CONFIG_FILENAME and not p.name.startswith(".")
    ]
    deals = [deal for deal in map(load_deal_from_file, deal_paths) if deal is not None]

    skipped = len(deal_paths) - len(deals)
    if skipped:
        logger.warning("%d of %d deal files in %s were skipped", skipped, len(deal_paths), dirpath)
    logger.info("Loaded %d deals from %s", len(deals), dirpath)

    return DealFile(deals=deals, config=config)


def load_deals_file(filepath: Path) -> DealFile:
    """
    Load and validate a single deals.yaml file.

    Unlike directory mode, any invalid deal fails the whole file. Repeated
    deal ids are reported; lookups resolve to the first occurrence.

    Raises:
        yaml.YAMLError: If YAML parsing fails
        ValueError: If the file is not a mapping, or schema validation fails
            (pydantic.ValidationError)
    """
    raw = _read_yaml(filepath)

    if raw is None:
        logger.warning("Deals file %s is empty", filepath)
        return DealFile()
    if not isinstance(raw, dict):
        raise ValueError(f"{filepath}: expected a mapping with a 'deals' list")

    # A 'deals:' key with every entry commented out parses as None
    if raw.get("deals") is None:
        raw = {**raw, "deals": []}

    deal_file = DealFile(**raw)
    for deal in deal_file.deals:
        deal.source_file = filepath

    duplicates = deal_file.duplicate_ids()
    if duplicates:
        logger.warning(
            "Deals file %s repeats deal ids %s; only the first of each is used",
            filepath,
            ", ".join(duplicates),
        )

    logger.info("Loaded %d deals from %s", len(deal_file.deals), filepath)
    return deal_file


def load_deals_from_path(path: Optional[Path] = None) -> Optional[DealFile]:
    """
    Load deals from a file, a directory, or the discovered default location.

    Args:
        path: Explicit deals.yaml file or deals/ directory. If None, uses
              find_deals_location() to auto-discover.

    Returns:
        DealFile, or None if nothing was found
    """
    if path is None:
        location = find_deals_location()
        if location is None:
            logger.info(
                "No deal configuration found (set %s or %s, or create ./%s/ or ./%s)",
                constants.ENV_DEALS_DIR,
                constants.ENV_DEALS_FILE,
                constants.DEFAULT_DEALS_DIR,
                constants.DEFAULT_DEALS_FILE,
            )
            return None
        path = location.path

    if path.is_dir():
        return load_deals_from_directory(path)
    if path.is_file():
        return load_deals_file(path)
    return None
