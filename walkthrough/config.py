"""Parser configuration loaded from YAML.

Classes
-------
WalkthroughConfig
    Loads the packaged ``defaults.yaml`` and an optional overlay file, and
    exposes the Markdown settings and default parser attributes.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "defaults.yaml"


class WalkthroughConfig:
    """Loads and queries the walkthrough parser configuration.

    Parameters
    ----------
    config_path : str or Path, optional
        Path to the base YAML configuration.  Defaults to the packaged
        ``defaults.yaml``.
    overlay_path : str or Path or None, optional
        Path to an optional overlay YAML, deep-merged on top of the base.

    Raises
    ------
    FileNotFoundError
        If a requested configuration file does not exist.
    ValueError
        If a configuration file does not hold a YAML mapping.
    yaml.YAMLError
        If the YAML is malformed.
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        overlay_path: str | Path | None = None,
    ) -> None:
        self._config_path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        self._raw: dict[str, Any] = self._load(self._config_path)

        if overlay_path is not None:
            overlay = self._load(Path(overlay_path))
            self._raw = self._deep_merge(self._raw, overlay)
            logger.info("Applied configuration overlay from %s", overlay_path)

        logger.debug("WalkthroughConfig loaded from %s", self._config_path)

    # ── Loading / merging ──────────────────────────────────────────

    @staticmethod
    def _load(path: Path) -> dict[str, Any]:
        if not path.is_file():
            raise FileNotFoundError(f"Walkthrough configuration not found: {path}")

        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a YAML mapping at the top level in {path}")
        return data

    @staticmethod
    def _deep_merge(base: dict, overlay: dict) -> dict:
        """Recursively merge *overlay* into a copy of *base*.

        Overlay values take precedence.  Nested dicts are merged rather than
        replaced outright.
        """
        result = deepcopy(base)
        for key, value in overlay.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = WalkthroughConfig._deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)
        return result

    # ── Queries ────────────────────────────────────────────────────

    @property
    def markdown_preset(self) -> str:
        return self._raw.get("markdown", {}).get("preset", "commonmark")

    @property
    def sidebar_container(self) -> str:
        return self._raw.get("markdown", {}).get("sidebar_container", "sidebar")

    @property
    def enabled_rules(self) -> list[str]:
        return list(self._raw.get("markdown", {}).get("enable") or [])

    def attributes(
        self, overrides: Optional[Mapping[str, Any]] = None
    ) -> dict[str, str]:
        """Return the parser attributes with *overrides* applied.

        Values are normalised to strings; a ``None`` value (``~`` in YAML)
        unsets the attribute.
        """
        merged: dict[str, Any] = dict(self._raw.get("attributes") or {})
        if overrides:
            merged.update(overrides)
        return {
            str(name): "" if value is True else str(value)
            for name, value in merged.items()
            if value is not None and value is not False
        }
