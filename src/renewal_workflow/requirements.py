"""RequirementsStore — per-jurisdiction renewal reference data from YAML.

One file per state, named after its two-letter code::

    <requirements_dir>/CA.yaml
    <requirements_dir>/TX.yaml

Each file looks like::

    state: CA
    portal_url: https://portal.example.gov/renewals
    estimated_time: 15 minutes
    license_types:
      - name: guard_card
        display_name: Guard Card
        renewal_training_hours: 8
    required_documents: [license_photo, training_certificate]
    instructions:
      - Log into the portal
      - ...

Files are read lazily on first lookup and cached for the life of the store.
A store without a directory answers every lookup with ``None``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from renewal_workflow.models.context import JurisdictionRequirements

logger = logging.getLogger(__name__)


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


class RequirementsStore:
    """Lazy, cached lookup of :class:`JurisdictionRequirements` by state.

    Args:
        requirements_dir: directory holding ``<STATE>.yaml`` files, or
            ``None`` to disable lookups.
    """

    def __init__(self, requirements_dir: str | Path | None = None) -> None:
        self._base = Path(requirements_dir) if requirements_dir is not None else None
        self._cache: dict[str, JurisdictionRequirements | None] = {}

    def get(self, state: str | None) -> JurisdictionRequirements | None:
        """Requirements for ``state``, or ``None`` when unknown.

        A missing file is cached as ``None`` too.  A malformed file raises
        ``ValueError`` every time it is asked for.
        """
        if not state or self._base is None:
            return None
        code = state.strip().upper()
        if code in self._cache:
            return self._cache[code]

        path = self._base / f"{code}.yaml"
        if not path.exists():
            logger.info("No renewal requirements for state %s", code)
            self._cache[code] = None
            return None

        raw = load_yaml(path) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Requirements file {path} must contain a mapping")
        raw.setdefault("state", code)
        try:
            reqs = JurisdictionRequirements.model_validate(raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid requirements file {path}: {exc}") from exc

        self._cache[code] = reqs
        logger.info(
            "Loaded renewal requirements for %s: %d license types",
            code, len(reqs.license_types),
        )
        return reqs

    def clear(self) -> None:
        """Forget cached files so edits on disk are picked up."""
        self._cache.clear()
