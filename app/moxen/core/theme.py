"""Console color theme.

The bundled ``data/theme.toml`` defines every style; a ``theme.toml`` in
the moxen config directory may override any subset of its ``[colors]``.
An unreadable or invalid user theme is logged and ignored.
"""

import functools
import logging
import tomllib
from importlib import resources
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, ValidationError
from rich.theme import Theme

from moxen.core.paths import get_config_dir

logger = logging.getLogger(__name__)


def _check_hex(value: str) -> str:
    digits = value.removeprefix("#")
    if not value.startswith("#") or len(digits) not in (3, 6):
        msg = f"expected #RGB or #RRGGBB, got {value!r}"
        raise ValueError(msg)
    try:
        int(digits, 16)
    except ValueError:
        msg = f"invalid hex color {value!r}"
        raise ValueError(msg) from None
    return value


HexColor = Annotated[str, AfterValidator(_check_hex)]


class ThemeColors(BaseModel):
    """Colors used by moxen output, as hex codes."""

    model_config = ConfigDict(extra="forbid")

    text: HexColor = "#ffffff"
    muted: HexColor = "#b2bec3"
    header: HexColor = "#c79c6e"
    border: HexColor = "#5c4326"

    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"

    # Dependency outcomes in `moxen add`
    added: HexColor = "#c1ff62"
    skipped: HexColor = "#0e8ac8"
    failed: HexColor = "#f53263"


def get_user_theme_path() -> Path:
    """Location of the optional user theme (~/.config/moxen/theme.toml)."""
    return get_config_dir() / "theme.toml"


def read_colors(path: Path) -> dict[str, str]:
    """Read the [colors] table of a theme file.

    Missing files give an empty table; unreadable or malformed ones are
    logged and also give an empty table.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme file %s: [colors] is not a table", path)
        return {}
    return {str(key): value for key, value in colors.items() if isinstance(value, str)}


def load_theme(user_path: Path | None = None) -> ThemeColors:
    """Merge the bundled theme with the user's overrides.

    Args:
        user_path: User theme file. Defaults to get_user_theme_path().
    """
    with resources.as_file(resources.files("moxen.data") / "theme.toml") as bundled:
        colors = read_colors(bundled)

    overrides = read_colors(user_path or get_user_theme_path())
    try:
        return ThemeColors(**{**colors, **overrides})
    except ValidationError as e:
        logger.warning("Invalid theme colors, using defaults: %s", e)
        return ThemeColors()


def build_rich_theme(colors: ThemeColors) -> Theme:
    """Turn theme colors into Rich styles named after each color."""
    styles = colors.model_dump()
    styles["error"] = f"bold {colors.error}"
    styles["bold_header"] = f"bold {colors.header}"
    return Theme(styles)


@functools.cache
def get_theme() -> Theme:
    """Rich theme for the shared consoles, loaded once per process."""
    return build_rich_theme(load_theme())
