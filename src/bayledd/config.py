"""Configuration loading helpers."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml

MAX_BAYS = 4
LED_DRIVERS = ("sysfs", "console")
DEFAULT_SYSFS_ROOT = Path("/sys/class/leds")
CONFIG_ENV_VAR = "BAYLEDD_CONFIG_PATH"
CONFIG_SEARCH_PATHS_ENV_VAR = "BAYLEDD_CONFIG_SEARCH_PATHS"
DEFAULT_CONFIG_SEARCH_PATHS: tuple[Path, ...] = (
    Path("bayledd.yaml"),
    Path("/etc/bayledd/config.yaml"),
)
SAFE_LED_NAME_PATTERN = re.compile(r"^[\w.:+-]+$")


@dataclass(slots=True, frozen=True)
class LedNames:
    blue: str | None = None
    red: str | None = None


@dataclass(slots=True, frozen=True)
class LedSettings:
    driver: str = "console"
    sysfs_root: Path = DEFAULT_SYSFS_ROOT
    brightness: int | None = None
    bays: tuple[LedNames, ...] = ()
    system: LedNames | None = None
    usb_switch: str | None = None


@dataclass(slots=True, frozen=True)
class Settings:
    leds: LedSettings = LedSettings()


def load_settings(path: Path) -> Settings:
    """Load configuration from a YAML document."""

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Configuration file {path} is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError("Configuration root must be a mapping")
    leds_raw = raw.get("leds") or {}
    if not isinstance(leds_raw, dict):
        raise ValueError("Field 'leds' must be a mapping")

    driver = str(leds_raw.get("driver", "console")).strip().lower()
    if driver not in LED_DRIVERS:
        raise ValueError(f"Field 'driver' must be one of: {', '.join(LED_DRIVERS)}")

    brightness = None
    if leds_raw.get("brightness") is not None:
        brightness = _require_int(leds_raw, "brightness")
        if not 1 <= brightness <= 10:
            raise ValueError("Field 'brightness' must be between 1 and 10")

    bays_raw = leds_raw.get("bays") or []
    if not isinstance(bays_raw, list):
        raise ValueError("Field 'bays' must be a list")
    if len(bays_raw) > MAX_BAYS:
        raise ValueError(f"Field 'bays' supports at most {MAX_BAYS} entries")
    bays = tuple(_parse_led_names(entry, f"bays[{position}]") for position, entry in enumerate(bays_raw))

    system = None
    if leds_raw.get("system") is not None:
        system = _parse_led_names(leds_raw["system"], "system")

    usb_switch = None
    if leds_raw.get("usb_switch") is not None:
        usb_switch = _require_led_name(leds_raw, "usb_switch")

    sysfs_root = DEFAULT_SYSFS_ROOT
    if "sysfs_root" in leds_raw:
        sysfs_root = Path(_require_str(leds_raw, "sysfs_root"))

    if driver == "sysfs" and not bays:
        raise ValueError("Field 'bays' must list at least one bay for the sysfs driver")

    return Settings(
        leds=LedSettings(
            driver=driver,
            sysfs_root=sysfs_root,
            brightness=brightness,
            bays=bays,
            system=system,
            usb_switch=usb_switch,
        )
    )


def resolve_config_path(
    override: str | os.PathLike[str] | None = None,
    extra_search_paths: Iterable[str | os.PathLike[str]] | None = None,
) -> Path | None:
    """Locate the configuration file; ``None`` means run on defaults."""

    candidate = override or os.getenv(CONFIG_ENV_VAR)
    if candidate:
        path = _normalize_path(candidate)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found at {path}")
        return path

    search_candidates: list[Path] = []
    env_search = os.getenv(CONFIG_SEARCH_PATHS_ENV_VAR)
    if env_search:
        for raw in env_search.split(os.pathsep):
            cleaned = raw.strip()
            if cleaned:
                search_candidates.append(Path(cleaned))

    if extra_search_paths:
        for configured in extra_search_paths:
            search_candidates.append(Path(str(configured)))

    search_candidates.extend(DEFAULT_CONFIG_SEARCH_PATHS)

    for candidate_path in search_candidates:
        path = _normalize_path(candidate_path)
        if path.exists():
            return path
    return None


def _normalize_path(candidate: str | os.PathLike[str]) -> Path:
    path = Path(candidate).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def _parse_led_names(entry: Any, field: str) -> LedNames:
    if not isinstance(entry, dict):
        raise ValueError(f"Field '{field}' must be a mapping with 'blue' and/or 'red'")
    names = LedNames(
        blue=_require_led_name(entry, "blue") if entry.get("blue") is not None else None,
        red=_require_led_name(entry, "red") if entry.get("red") is not None else None,
    )
    if names.blue is None and names.red is None:
        raise ValueError(f"Field '{field}' must name at least one LED")
    return names


def _require_str(source: dict[str, Any], key: str) -> str:
    value = source.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Field '{key}' must be a non-empty string")
    return value.strip()


def _require_int(source: dict[str, Any], key: str) -> int:
    value = source.get(key)
    if value is None:
        raise ValueError(f"Field '{key}' must be provided")
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"Field '{key}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field '{key}' must be an integer") from exc


def _require_led_name(source: dict[str, Any], key: str) -> str:
    value = _require_str(source, key)
    if not SAFE_LED_NAME_PATTERN.fullmatch(value) or value in (".", ".."):
        raise ValueError(
            (
                f"Field '{key}' must be a single LED name made of letters, numbers, "
                "dots, colons, underscores, plus or hyphens"
            )
        )
    return value
