"""
Flat-file store for form definitions.

Each form lives in ``<forms_dir>/<slug>.json``. Hand-written YAML
definitions (``<slug>.yaml`` / ``<slug>.yml``) are also read; saving
always writes JSON.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from formbuilder.core.schema import SLUG_PATTERN, Form

logger = logging.getLogger(__name__)

FORM_SUFFIXES = (".json", ".yaml", ".yml")


class FormStoreError(Exception):
    """Base class for form store errors."""


class InvalidSlugError(FormStoreError):
    """Raised when a slug is not URL-safe."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(
            "Slug must contain only lowercase letters, numbers, and hyphens"
        )


class DuplicateSlugError(FormStoreError):
    """Raised when a slug already belongs to a different form."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__("A form with this slug already exists")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class FormStore:
    """Reads and writes form definitions in a directory.

    Args:
        forms_dir: Directory holding one file per form.
    """

    def __init__(self, forms_dir: str | Path):
        self.forms_dir = Path(forms_dir)

    def get_form(self, slug: str) -> Form | None:
        """Load a form by slug.

        Returns None when the slug is malformed, the file is missing, or
        the file does not hold a valid form.
        """
        if not SLUG_PATTERN.fullmatch(slug):
            return None

        for suffix in FORM_SUFFIXES:
            path = self.forms_dir / f"{slug}{suffix}"
            if path.is_file():
                return self._load(path)
        return None

    def list_forms(self) -> list[Form]:
        """Load every valid form in the directory, sorted by slug."""
        if not self.forms_dir.is_dir():
            return []

        forms: dict[str, Form] = {}
        for path in sorted(self.forms_dir.iterdir()):
            if path.suffix not in FORM_SUFFIXES or not path.is_file():
                continue
            form = self._load(path)
            if form is not None and form.slug not in forms:
                forms[form.slug] = form
        return [forms[slug] for slug in sorted(forms)]

    def save_form(self, form: Form) -> Form:
        """Write a form to ``<slug>.json``, stamping its timestamps.

        Raises:
            InvalidSlugError: If the slug is not URL-safe.
            DuplicateSlugError: If the slug belongs to a different form ID.
        """
        if not SLUG_PATTERN.fullmatch(form.slug):
            raise InvalidSlugError(form.slug)

        existing = self.get_form(form.slug)
        if existing is not None and existing.id != form.id:
            raise DuplicateSlugError(form.slug)

        now = _now_iso()
        created_at = form.created_at
        if created_at is None:
            created_at = existing.created_at if existing and existing.created_at else now
        saved = form.model_copy(update={"created_at": created_at, "updated_at": now})

        self.forms_dir.mkdir(parents=True, exist_ok=True)
        path = self.forms_dir / f"{form.slug}.json"
        path.write_text(
            json.dumps(saved.to_json_dict(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info("Saved form '%s' to %s", form.slug, path)
        return saved

    def delete_form(self, slug: str) -> bool:
        """Delete every stored file for a slug. Returns True if one existed."""
        if not SLUG_PATTERN.fullmatch(slug):
            return False

        deleted = False
        for suffix in FORM_SUFFIXES:
            path = self.forms_dir / f"{slug}{suffix}"
            if path.is_file():
                path.unlink()
                deleted = True
        if deleted:
            logger.info("Deleted form '%s'", slug)
        return deleted

    def _load(self, path: Path) -> Form | None:
        try:
            raw = self._read(path)
            return Form.model_validate(raw)
        except (OSError, ValueError, ValidationError, yaml.YAMLError) as e:
            logger.error("Error reading form file %s: %s", path.name, e)
            return None

    @staticmethod
    def _read(path: Path) -> Any:
        content = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            return json.loads(content)
        return yaml.safe_load(content)
