"""Configuration management for previewbox.

Handles loading .previewbox.yaml files with directory traversal,
environment variable overrides, and default values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .bundle import PreviewboxError
from .session import DEFAULT_DEBOUNCE_MS
from .viewport import ViewportProfile

CONFIG_FILENAME = ".previewbox.yaml"
ENV_DEBOUNCE_MS = "PREVIEWBOX_DEBOUNCE_MS"
ENV_VIEWPORT = "PREVIEWBOX_VIEWPORT"


@dataclass
class PreviewConfig:
    """Live preview settings."""

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    viewport: str = "desktop"  # "desktop", "tablet", "mobile"
    allow_forms: bool = False  # Add allow-forms to the frame sandbox


@dataclass
class ProjectFilesConfig:
    """File names of the three sources inside a project directory."""

    html: str = "index.html"
    css: str = "style.css"
    js: str = "index.js"


@dataclass
class PreviewboxConfig:
    """Complete previewbox configuration."""

    preview: PreviewConfig = field(default_factory=PreviewConfig)
    files: ProjectFilesConfig = field(default_factory=ProjectFilesConfig)
    config_path: Path | None = None  # Path where config was loaded from

    @property
    def viewport_profile(self) -> ViewportProfile:
        return ViewportProfile.parse(self.preview.viewport)

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            PreviewboxError: If configuration is invalid.
        """
        if not isinstance(self.preview.debounce_ms, int) or isinstance(
            self.preview.debounce_ms, bool
        ):
            raise PreviewboxError(
                f"debounce_ms must be an integer, got {self.preview.debounce_ms!r}"
            )
        if self.preview.debounce_ms < 0:
            raise PreviewboxError("debounce_ms must be non-negative")

        ViewportProfile.parse(self.preview.viewport)

        if not isinstance(self.preview.allow_forms, bool):
            raise PreviewboxError(
                f"allow_forms must be true or false, got {self.preview.allow_forms!r}"
            )

        names = [self.files.html, self.files.css, self.files.js]
        for name in names:
            if not name or not isinstance(name, str):
                raise PreviewboxError("Project file names cannot be empty")
            if "/" in name or "\\" in name:
                raise PreviewboxError(
                    f"Project file name '{name}' cannot contain path separators"
                )
        if len(set(names)) != len(names):
            raise PreviewboxError(
                f"Project file names must be distinct: {', '.join(names)}"
            )


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find .previewbox.yaml by traversing up from start_path.

    Args:
        start_path: Directory to start searching from. Defaults to cwd.

    Returns:
        Path to config file if found, None otherwise.
    """
    if start_path is None:
        start_path = Path.cwd()
    else:
        start_path = Path(start_path).resolve()

    # If start_path is a file, use its parent directory
    if start_path.is_file():
        start_path = start_path.parent

    current = start_path
    while True:
        config_path = current / CONFIG_FILENAME
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    config_path: Path | None = None,
    start_path: Path | None = None,
    debounce_override: int | None = None,
    viewport_override: str | None = None,
) -> PreviewboxConfig:
    """Load configuration from file, environment, and overrides.

    Priority (highest to lowest):
    1. Function arguments (debounce_override, viewport_override)
    2. Environment variables (PREVIEWBOX_DEBOUNCE_MS, PREVIEWBOX_VIEWPORT)
    3. Config file (.previewbox.yaml)
    4. Defaults

    Args:
        config_path: Explicit path to config file. If None, searches.
        start_path: Directory to start config file search from.
        debounce_override: Override debounce delay from CLI argument.
        viewport_override: Override viewport profile from CLI argument.

    Returns:
        Loaded and validated configuration.
    """
    config = PreviewboxConfig()

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.is_file():
            raise PreviewboxError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file(start_path)

    if config_path is not None:
        config = _load_config_file(config_path)
        config.config_path = config_path

    env_debounce = os.environ.get(ENV_DEBOUNCE_MS)
    if env_debounce:
        try:
            config.preview.debounce_ms = int(env_debounce)
        except ValueError as e:
            raise PreviewboxError(
                f"Invalid {ENV_DEBOUNCE_MS} value: {env_debounce!r}"
            ) from e

    env_viewport = os.environ.get(ENV_VIEWPORT)
    if env_viewport:
        config.preview.viewport = env_viewport.lower()

    if debounce_override is not None:
        config.preview.debounce_ms = debounce_override
    if viewport_override is not None:
        config.preview.viewport = viewport_override.lower()

    config.validate()
    return config


def _load_config_file(config_path: Path) -> PreviewboxConfig:
    """Load configuration from a YAML file.

    Raises:
        PreviewboxError: If file cannot be read or parsed.
    """
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise PreviewboxError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise PreviewboxError(f"Cannot read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise PreviewboxError(f"Config file {config_path} must contain a mapping")

    config = PreviewboxConfig(config_path=config_path)

    if "preview" in data and isinstance(data["preview"], dict):
        preview_data = data["preview"]
        config.preview = PreviewConfig(
            debounce_ms=preview_data.get("debounce_ms", config.preview.debounce_ms),
            viewport=str(preview_data.get("viewport", config.preview.viewport)).lower(),
            allow_forms=preview_data.get("allow_forms", config.preview.allow_forms),
        )

    if "files" in data and isinstance(data["files"], dict):
        files_data = data["files"]
        config.files = ProjectFilesConfig(
            html=str(files_data.get("html", config.files.html)),
            css=str(files_data.get("css", config.files.css)),
            js=str(files_data.get("js", config.files.js)),
        )

    return config


def create_default_config(path: Path | None = None) -> Path:
    """Create a default .previewbox.yaml config file.

    Args:
        path: Directory to create config in. Defaults to cwd.

    Returns:
        Path to created config file.

    Raises:
        PreviewboxError: If file already exists or cannot be written.
    """
    if path is None:
        path = Path.cwd()
    else:
        path = Path(path)

    config_path = path / CONFIG_FILENAME

    if config_path.exists():
        raise PreviewboxError(f"Config file already exists: {config_path}")

    config_content = f"""# previewbox configuration

# Live preview
preview:
  debounce_ms: {DEFAULT_DEBOUNCE_MS}       # Quiet period before re-rendering (or PREVIEWBOX_DEBOUNCE_MS)
  viewport: "desktop"     # "desktop", "tablet", "mobile" (or PREVIEWBOX_VIEWPORT)
  allow_forms: false      # Allow form submission inside the preview frame

# Source file names inside a project directory
files:
  html: "index.html"
  css: "style.css"
  js: "index.js"
"""

    try:
        config_path.write_text(config_content, encoding="utf-8")
    except OSError as e:
        raise PreviewboxError(f"Cannot write config file: {e}") from e

    return config_path


def config_to_dict(config: PreviewboxConfig) -> dict[str, Any]:
    """Convert config to dictionary for display."""
    return {
        "preview": {
            "debounce_ms": config.preview.debounce_ms,
            "viewport": config.preview.viewport,
            "allow_forms": config.preview.allow_forms,
        },
        "files": {
            "html": config.files.html,
            "css": config.files.css,
            "js": config.files.js,
        },
        "config_path": str(config.config_path) if config.config_path else None,
    }
