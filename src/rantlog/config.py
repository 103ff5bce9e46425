"""Configuration loaded from .rant.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.

The result is built once per invocation by the CLI and passed down
explicitly; nothing in the package caches it.
"""

from __future__ import annotations

import logging
import os
import platform
import socket
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rantlog.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".rant.toml"
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "rant" / "config.toml"
DEFAULT_DOCUMENT = "rants.qmd"
DEFAULT_BRANCH = "main"


# ---------------------------------------------------------------------------
# Environment detection
# ---------------------------------------------------------------------------


def detect_environment(system: str | None = None, hostname: str | None = None) -> str:
    """Classify the host as ``macos``, ``droplet`` or ``linux``.

    A Linux host counts as a droplet when its hostname contains
    "droplet" or ``DROPLET_ENV`` is set.
    """
    system = (system or platform.system()).lower()
    hostname = hostname if hostname is not None else socket.gethostname()

    if system == "darwin":
        return "macos"
    if system == "linux" and ("droplet" in hostname or os.environ.get("DROPLET_ENV")):
        return "droplet"
    return "linux"


def base_directory(environment: str | None = None) -> Path:
    """Directory that holds the site checkouts and the base config file.

    ``RANT_BASE_DIR`` wins over the per-environment default.
    """
    override = os.environ.get("RANT_BASE_DIR")
    if override:
        return Path(override).expanduser()
    environment = environment or detect_environment()
    if environment == "macos":
        return Path.home() / "Developer"
    return Path.home() / "projects"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class SiteConfig(BaseModel):
    """One target repository and the timeline file inside it."""

    model_config = ConfigDict(frozen=True)

    path: Path
    file: str = DEFAULT_DOCUMENT
    branch: str = DEFAULT_BRANCH
    remote: str = "origin"

    @property
    def document_path(self) -> Path:
        return self.path / self.file


class FormatSectionConfig(BaseModel):
    """[format] section — AI reformatting."""

    model: str | None = None
    timeout: int = 120


class EditorSectionConfig(BaseModel):
    """[editor] section."""

    command: str = ""
    gui: bool = False


class RantConfig(BaseModel):
    """Top-level configuration."""

    default_site: str = ""
    sites: dict[str, SiteConfig] = Field(default_factory=dict)
    format: FormatSectionConfig = Field(default_factory=FormatSectionConfig)
    editor: EditorSectionConfig = Field(default_factory=EditorSectionConfig)

    @field_validator("sites", mode="before")
    @classmethod
    def _drop_comment_keys(cls, value: Any) -> Any:
        """Ignore ``_comment``-style keys and non-table values."""
        if not isinstance(value, dict):
            return value
        return {
            key.lower(): site
            for key, site in value.items()
            if not key.startswith("_") and isinstance(site, (dict, SiteConfig))
        }

    @property
    def site_names(self) -> list[str]:
        return list(self.sites.keys())


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def config_search_paths(base_dir: Path | None = None) -> list[Path]:
    """Candidate config files, highest priority first."""
    base_dir = base_dir or base_directory()
    return [
        Path(".") / CONFIG_FILENAME,
        base_dir / CONFIG_FILENAME,
        GLOBAL_CONFIG_PATH,
    ]


def load_config(path: str | Path | None = None, base_dir: Path | None = None) -> RantConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .rant.toml in CWD
    3. .rant.toml in the base directory
    4. ~/.config/rant/config.toml

    Then overlay environment variables and resolve relative site paths
    against the base directory.

    Raises:
        ConfigurationError: If a config file exists but cannot be parsed
            or does not validate.
    """
    base_dir = base_dir or base_directory()
    data: dict[str, Any] = {}

    if path is not None:
        toml_path = Path(path).expanduser()
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for candidate in config_search_paths(base_dir):
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break

    try:
        config = RantConfig.model_validate(data) if data else RantConfig()
    except ValidationError as exc:
        raise ConfigurationError(f"invalid configuration: {exc}") from exc

    config = _apply_env_vars(config)
    return _resolve_site_paths(config, base_dir)


def merge_cli_overrides(config: RantConfig, **cli_kwargs: object) -> RantConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only values that are not None are applied.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, ...]] = {
        "site": ("default_site",),
        "model": ("format", "model"),
        "editor_command": ("editor", "command"),
        "gui": ("editor", "gui"),
    }

    for key, value in cli_kwargs.items():
        if value is None or key not in mapping:
            continue
        target = data
        *parents, leaf = mapping[key]
        for parent in parents:
            target = target[parent]
        target[leaf] = value

    return RantConfig.model_validate(data)


def resolve_site(config: RantConfig, name: str | None = None) -> SiteConfig:
    """Look up a site by name, falling back to ``default_site``.

    Raises:
        ConfigurationError: If no name is given and there is no default,
            or the name is unknown.
    """
    site_name = (name or config.default_site).lower()
    if not site_name:
        if len(config.sites) == 1:
            return next(iter(config.sites.values()))
        raise ConfigurationError(
            "no site selected; pass --site or set default_site in " + CONFIG_FILENAME
        )
    if site_name not in config.sites:
        available = ", ".join(config.site_names) or "(none configured)"
        raise ConfigurationError(f"Unknown site '{site_name}'. Available sites: {available}")
    return config.sites[site_name]


def write_default_config(path: Path, base_dir: Path | None = None) -> bool:
    """Create a starter config file if it does not exist yet.

    Returns:
        True if a file was written, False if one was already there.
    """
    if path.exists():
        return False
    base_dir = base_dir or base_directory()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG.format(site_path=base_dir / "my-site"), encoding="utf-8")
    logger.info("Wrote starter config to %s", path)
    return True


_STARTER_CONFIG = """\
# rant configuration. Relative site paths resolve against the base directory.
default_site = "mysite"

[sites.mysite]
path = "{site_path}"
file = "rants.qmd"
branch = "main"

[format]
# model = "sonnet"
timeout = 120

[editor]
# command = "vim"
gui = false
"""


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        raise ConfigurationError(f"failed to parse {path}: {exc}") from exc


def _apply_env_vars(config: RantConfig) -> RantConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    site = os.environ.get("RANT_SITE")
    if site:
        data["default_site"] = site
    model = os.environ.get("RANT_MODEL")
    if model:
        data["format"]["model"] = model

    return RantConfig.model_validate(data)


def _resolve_site_paths(config: RantConfig, base_dir: Path) -> RantConfig:
    sites = {}
    for name, site in config.sites.items():
        site_path = site.path.expanduser()
        if not site_path.is_absolute():
            site_path = base_dir / site_path
        sites[name] = site.model_copy(update={"path": site_path})
    return config.model_copy(update={"sites": sites})
