"""Generator configuration and env loading."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from bongard.core.models import CUTOFF, MAX_TRY, PRINT_GRAN, GeneratorParams

DEFAULT_ENV_FILES: tuple[str, ...] = (
    "appdata/config/.env.bongard",
    "appdata/config/.env.bongard.local",
    ".env.bongard",
    ".env.bongard.local",
)


def load_env_file(path: str = ".env.bongard", *, override_existing: bool = True) -> None:
    """Load KEY=VALUE pairs from an env file into process environment.

    By default, values from the env file overwrite existing environment variables.
    """
    env_path = Path(path)
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue

        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]

        if override_existing or key not in os.environ:
            os.environ[key] = value


def load_default_env_files(
    *, override_existing: bool = True, paths: Sequence[str] | None = None
) -> None:
    """Load env files left-to-right; later files win."""
    for path in tuple(paths) if paths is not None else DEFAULT_ENV_FILES:
        load_env_file(path, override_existing=override_existing)


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class GeneratorSettings:
    """Immutable generator configuration sourced from environment."""

    min_elements: int = 4
    max_elements: int = 6
    min_size: int = 2
    max_size: int = 98
    min_insides: int = 1
    seed: int | None = None
    max_tries: int = MAX_TRY
    cutoff: int = CUTOFF
    print_gran: int = PRINT_GRAN

    def params(self) -> GeneratorParams:
        """Return validated generator parameters."""
        return GeneratorParams(
            min_elements=self.min_elements,
            max_elements=self.max_elements,
            min_size=self.min_size,
            max_size=self.max_size,
            min_insides=self.min_insides,
        )


def load_settings() -> GeneratorSettings:
    """Build generator settings from ``BONGARD_*`` environment variables."""
    defaults = GeneratorSettings()
    settings = GeneratorSettings(
        min_elements=_int("BONGARD_MIN_ELEMENTS", defaults.min_elements),
        max_elements=_int("BONGARD_MAX_ELEMENTS", defaults.max_elements),
        min_size=_int("BONGARD_MIN_SIZE", defaults.min_size),
        max_size=_int("BONGARD_MAX_SIZE", defaults.max_size),
        min_insides=_int("BONGARD_MIN_INSIDES", defaults.min_insides),
        seed=_optional_int("BONGARD_SEED"),
        max_tries=_int("BONGARD_MAX_TRIES", defaults.max_tries),
        cutoff=_int("BONGARD_CUTOFF", defaults.cutoff),
        print_gran=_int("BONGARD_PRINT_GRAN", defaults.print_gran),
    )
    if settings.max_tries < 1 or settings.cutoff < 1 or settings.print_gran < 1:
        raise ValueError("BONGARD_MAX_TRIES, BONGARD_CUTOFF and BONGARD_PRINT_GRAN must be positive.")
    return settings
