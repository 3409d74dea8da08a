"""
Output Writer
Persists generated units as `<output_root>/<kebab-group>/<UnitName>.tsx`
with a reserved `index.ts` and `page.tsx` per group.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterable, Sequence

from core.errors import PlanningError
from core.logging_config import get_logger
from core.naming import kebab_case
from .sanitize import base_name

logger = get_logger(__name__)

UNIT_EXTENSION = ".tsx"
INDEX_FILE = "index.ts"
PAGE_FILE = "page.tsx"
RESERVED_FILES = frozenset({INDEX_FILE, PAGE_FILE})


class GroupUnit:
    """Name and description of a unit listed in group artifacts."""

    __slots__ = ("name", "description")

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description

    @property
    def base(self) -> str:
        return base_name(self.name)


class OutputWriter:
    """Writes unit sources and per-group artifacts under one root."""

    def __init__(self, output_root: str | Path):
        self.output_root = Path(output_root)

    def group_dir(self, group: str) -> Path:
        return self.output_root / kebab_case(group)

    def unit_path(self, group: str, unit_name: str) -> Path:
        return self.group_dir(group) / f"{base_name(unit_name)}{UNIT_EXTENSION}"

    def check_targets(self, targets: Iterable[tuple[str, str]]) -> None:
        """
        Reject a run whose units would land on a reserved file or on each other.

        Args:
            targets: `(group, unit_name)` pairs in generation order

        Raises:
            PlanningError: A unit maps to `index.ts`/`page.tsx` or shares a path
        """
        claimed: dict[str, str] = {}
        for group, unit_name in targets:
            path = self.unit_path(group, unit_name)
            details = {"unit": unit_name, "group": group, "path": str(path)}
            if path.name.lower() in RESERVED_FILES:
                raise PlanningError(
                    f"Unit '{unit_name}' in group '{group}' collides with reserved file {path.name}",
                    details=details,
                )
            # case-insensitive filesystems would merge these too
            key = path.as_posix().lower()
            if key in claimed:
                raise PlanningError(
                    f"Units '{claimed[key]}' and '{unit_name}' in group '{group}' both write {path.name}",
                    details={**details, "conflicts_with": claimed[key]},
                )
            claimed[key] = unit_name

    def write_unit(self, group: str, unit_name: str, code: str) -> Path:
        """Write one unit's source. Existing content is replaced atomically."""
        path = self.unit_path(group, unit_name)
        if path.name.lower() in RESERVED_FILES:
            raise ValueError(f"Unit name '{unit_name}' collides with reserved file {path.name}")
        atomic_write(path, code)
        logger.info("unit_written", group=group, unit=unit_name, path=str(path))
        return path

    def write_group_index(self, group: str, description: str, units: Sequence[GroupUnit]) -> Path:
        named = "\n".join(f'export {{ {u.base} }} from "./{u.base}";' for u in units)
        defaults = "\n".join(f'export {{ default as {u.base}Default }} from "./{u.base}";' for u in units)
        content = (
            f"/**\n"
            f" * {group} Components\n"
            f" *\n"
            f" * {description}\n"
            f" *\n"
            f" * Generated components: {len(units)}\n"
            f" */\n"
            f"\n"
            f"{named}\n"
            f"\n"
            f"// Re-export default exports\n"
            f"{defaults}\n"
        )
        path = self.group_dir(group) / INDEX_FILE
        atomic_write(path, content)
        return path

    def write_group_page(self, group: str, description: str, units: Sequence[GroupUnit]) -> Path:
        imports = "\n".join(f'import {{ {u.base} }} from "./{u.base}";' for u in units)
        sections = "\n".join(
            f"""
        <section className="space-y-4">
          <h2 className="text-2xl font-semibold">{u.base}</h2>
          <p className="text-muted-foreground">{u.description}</p>
          <div className="border rounded-lg p-6 bg-card">
            <{u.base} />
          </div>
        </section>"""
            for u in units
        )
        content = f"""import React from "react";
{imports}

export default function {base_name(group)}Preview() {{
  return (
    <div className="container mx-auto p-8 space-y-8">
      <div className="text-center">
        <h1 className="text-3xl font-bold mb-2">{group} Components</h1>
        <p className="text-muted-foreground">{description}</p>
      </div>

      <div className="grid gap-8">
{sections}
      </div>
    </div>
  );
}}
"""
        path = self.group_dir(group) / PAGE_FILE
        atomic_write(path, content)
        return path

    def write_group_artifacts(self, group: str, description: str, units: Sequence[GroupUnit]) -> None:
        if not units:
            return
        self.write_group_index(group, description, units)
        self.write_group_page(group, description, units)
        logger.debug("group_artifacts_written", group=group, units=len(units))


def atomic_write(path: Path, content: str) -> None:
    """Write via a temp file in the target directory, then swap it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


__all__ = ["OutputWriter", "GroupUnit", "atomic_write", "RESERVED_FILES", "INDEX_FILE", "PAGE_FILE", "UNIT_EXTENSION"]
