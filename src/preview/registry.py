"""
Preview Registry
Scans persisted units and emits a lazy-loading registry, its sample-prop
companion and a preview canvas. Everything here degrades gracefully: a
broken unit becomes a visible placeholder, never a hard failure.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from core.json import safe_json_dumps
from core.logging_config import get_logger
from core.naming import title_from_kebab
from generation.writer import atomic_write
from monitoring import MetricsCollector, metrics_collector, trace_operation
from .resolver import TextTypeResolver, TypeResolver, extract_props_contract, find_types_source
from .synthesizer import synthesize

logger = get_logger(__name__)

REGISTRY_FILE = "registry.tsx"
PREVIEW_PROPS_FILE = "preview-props.ts"
CANVAS_FILE = "PreviewCanvas.tsx"
PAGE_FILE = "page.tsx"
UNIT_SUFFIX = ".tsx"

EXPORT_NAMED = re.compile(r"export\s+(?:async\s+)?(?:function|const|class|let|var)\s+(\w+)")
EXPORT_LIST = re.compile(r"export\s*\{([^}]*)\}")
EXPORT_DEFAULT = re.compile(r"export\s+default\b")


class MissingComponent:
    """Placeholder rendered in place of a unit that cannot be loaded."""

    def __init__(self, name: str):
        self.name = name

    def __call__(self, **props: Any) -> str:
        return f"Component not found: {self.name}"

    def __repr__(self) -> str:
        return f"MissingComponent({self.name!r})"


class StaticComponent:
    """Python-side stand-in for an exported component; renders to a description."""

    def __init__(self, name: str):
        self.name = name

    def __call__(self, **props: Any) -> dict[str, Any]:
        return {"component": self.name, "props": props}


def scan_exports(source: str) -> dict[str, StaticComponent]:
    """Exported names of a unit source, plus `default` when present."""
    exports: dict[str, StaticComponent] = {}
    for match in EXPORT_NAMED.finditer(source):
        exports[match.group(1)] = StaticComponent(match.group(1))
    for match in EXPORT_LIST.finditer(source):
        for spec in match.group(1).split(","):
            exported = spec.split(" as ")[-1].strip()
            if exported:
                exports[exported] = StaticComponent(exported)
    if EXPORT_DEFAULT.search(source):
        exports.setdefault("default", StaticComponent("default"))
    return exports


def source_loader(path: Path) -> Callable[[], Mapping[str, Any]]:
    """Loader returning the exports found in a unit file."""

    def load() -> Mapping[str, Any]:
        return scan_exports(path.read_text(encoding="utf-8"))

    return load


@dataclass
class RegistryEntry:
    """One discovered unit."""

    group: str
    name: str
    module_path: str
    file: Path | None = None
    loader: Callable[[], Mapping[str, Any] | Any] | None = field(default=None, repr=False)


def _pick_export(module: Any, name: str) -> Any:
    if isinstance(module, Mapping):
        return module.get(name) or module.get("default")
    return getattr(module, name, None) or getattr(module, "default", None)


class PreviewRegistry:
    """Runtime view over registry entries with sample props merged in."""

    def __init__(self, entries: list[RegistryEntry], preview_props: dict[str, dict[str, Any]] | None = None):
        self.entries = list(entries)
        self.preview_props = preview_props or {}
        self._by_name = {e.name: e for e in self.entries}

    def load(self, name: str) -> Callable[..., Any]:
        """The unit's component, or a MissingComponent when it cannot be loaded."""
        entry = self._by_name.get(name)
        if entry is None or entry.loader is None:
            logger.warning("preview_unknown_unit", unit=name)
            return MissingComponent(name)

        try:
            module = entry.loader()
        except Exception as e:
            logger.warning("preview_load_failed", unit=name, path=entry.module_path, error=str(e))
            return MissingComponent(name)

        component = _pick_export(module, name)
        if component is None:
            logger.warning("preview_missing_export", unit=name, path=entry.module_path)
            return MissingComponent(name)
        return component

    def resolve(self, name: str) -> Callable[..., Any]:
        """Renderer with sample props applied under explicit props."""
        component = self.load(name)
        sample = self.preview_props.get(name, {})

        def render(**props: Any) -> Any:
            return component(**{**sample, **props})

        return render

    def render(self, name: str, **props: Any) -> Any:
        return self.resolve(name)(**props)

    def grouped(self) -> list[tuple[str, list[RegistryEntry]]]:
        """Entries grouped by group name, in first-seen order."""
        groups: dict[str, list[RegistryEntry]] = {}
        for entry in self.entries:
            groups.setdefault(entry.group, []).append(entry)
        return list(groups.items())


@dataclass
class RegistryBuild:
    entries: list[RegistryEntry]
    preview_props: dict[str, dict[str, Any]]
    written: list[Path]

    def runtime(self) -> PreviewRegistry:
        return PreviewRegistry(self.entries, self.preview_props)


class RegistryBuilder:
    """Derives registry artifacts from what is on disk, not from the plan."""

    def __init__(
        self,
        output_root: str | Path,
        project_root: str | Path = ".",
        resolver: TypeResolver | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self.output_root = Path(output_root)
        self.project_root = Path(project_root)
        self._resolver = resolver
        self._metrics = metrics or metrics_collector

    @property
    def resolver(self) -> TypeResolver:
        if self._resolver is None:
            self._resolver = TextTypeResolver.from_sources([find_types_source(self.project_root)])
        return self._resolver

    def discover(self) -> list[RegistryEntry]:
        """Group directories (sorted) and their unit files (sorted)."""
        if not self.output_root.is_dir():
            logger.warning("output_root_missing", path=str(self.output_root))
            return []

        entries = []
        for group_dir in sorted(p for p in self.output_root.iterdir() if p.is_dir()):
            if group_dir.name.startswith("."):
                continue
            files = sorted(
                f for f in group_dir.iterdir()
                if f.is_file() and f.suffix == UNIT_SUFFIX and f.name != PAGE_FILE and not f.name.startswith(".")
            )
            if not files:
                continue
            title = title_from_kebab(group_dir.name)
            for f in files:
                entries.append(
                    RegistryEntry(
                        group=title,
                        name=f.stem,
                        module_path=f"./{group_dir.name}/{f.stem}",
                        file=f,
                        loader=source_loader(f),
                    )
                )

        logger.debug("registry_discovered", entries=len(entries))
        return entries

    def sample_props_for(self, entry: RegistryEntry) -> dict[str, Any]:
        """Synthesized props for one unit; empty when nothing resolves."""
        if entry.file is None:
            return {}
        try:
            source = entry.file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("unit_unreadable", unit=entry.name, error=str(e))
            return {}

        contract = extract_props_contract(source, entry.name)
        if contract is None:
            return {}

        resolver = self.resolver
        if isinstance(resolver, TextTypeResolver):
            # Shapes declared beside the component resolve too
            resolver = resolver.with_source(source)

        props = {}
        for prop, type_text in contract[1].items():
            value = synthesize(type_text, resolver, 0)
            if value is None:
                self._metrics.record_synthesis_gap()
                continue
            props[prop] = value
        return props

    def build_preview_props(self, entries: list[RegistryEntry]) -> dict[str, dict[str, Any]]:
        preview_props = {}
        for entry in entries:
            props = self.sample_props_for(entry)
            if props:
                preview_props[entry.name] = props
        return preview_props

    def build(self) -> RegistryBuild:
        """Scan, synthesize and write registry.tsx, preview-props.ts and (if absent) PreviewCanvas.tsx."""
        with trace_operation("registry_scan", root=str(self.output_root)):
            entries = self.discover()
            preview_props = self.build_preview_props(entries)

        self.output_root.mkdir(parents=True, exist_ok=True)
        written = []

        props_path = self.output_root / PREVIEW_PROPS_FILE
        atomic_write(props_path, render_preview_props(preview_props))
        written.append(props_path)

        registry_path = self.output_root / REGISTRY_FILE
        atomic_write(registry_path, render_registry(entries))
        written.append(registry_path)

        canvas_path = self.output_root / CANVAS_FILE
        if not canvas_path.exists():
            atomic_write(canvas_path, CANVAS_TEMPLATE)
            written.append(canvas_path)

        self._metrics.set_registry_size(len(entries))
        logger.info("registry_built", entries=len(entries), with_props=len(preview_props))
        return RegistryBuild(entries=entries, preview_props=preview_props, written=written)


def _js(value: Any) -> str:
    return safe_json_dumps(value)


def render_preview_props(preview_props: dict[str, dict[str, Any]]) -> str:
    return f"export const previewProps: Record<string, any> = {safe_json_dumps(preview_props, indent=2)};\n"


def render_registry(entries: list[RegistryEntry]) -> str:
    lines = [
        f"  {{ group: {_js(e.group)}, name: {_js(e.name)}, path: {_js(e.module_path)}, "
        f"loader: () => import({_js(e.module_path)}) }}"
        for e in entries
    ]
    return REGISTRY_TEMPLATE.replace("__ENTRIES__", ",\n".join(lines))


REGISTRY_TEMPLATE = """"use client";
import React from 'react';
import dynamic from 'next/dynamic';
import { previewProps } from './preview-props';

export type PreviewRegistryItem = {
  group: string;
  name: string;
  path: string;
  loader: () => Promise<any>;
};

function MissingComponent({ name }: { name: string }) {
  return (
    <div className="rounded-md border border-dashed p-4 text-sm text-muted-foreground">
      Component not found: <span className="font-medium">{name}</span>
    </div>
  );
}

const items: PreviewRegistryItem[] = [
__ENTRIES__
];

export const previewItems = items.map((item) => ({
  ...item,
  Component: dynamic(async () => {
    try {
      const mod = (await item.loader()) as Record<string, any>;
      const comp = mod[item.name] || mod.default;
      if (!comp) {
        console.warn('[preview] Missing export ' + item.name + ' in ' + item.path);
      }
      const C = (comp || ((props: any) => <MissingComponent name={item.name} {...props} />)) as React.ComponentType<any>;
      return (props: any) => <C {...(previewProps[item.name] || {})} {...props} />;
    } catch (e) {
      console.warn('[preview] Failed to load ' + item.path + ':', e);
      return ((props: any) => <MissingComponent name={item.name} {...props} />) as React.ComponentType<any>;
    }
  }),
}));
"""

CANVAS_TEMPLATE = """"use client";
import React from 'react';
import { previewItems } from './registry';

export default function PreviewCanvas() {
  return (
    <div className="min-h-screen w-full p-6 space-y-8">
      <header>
        <h1 className="text-3xl font-bold">Preview Canvas</h1>
        <p className="text-sm text-muted-foreground">All generated components at a glance</p>
      </header>
      <div className="space-y-10">
        {groupBy(previewItems, (i) => i.group).map(([group, comps]) => (
          <section key={group} className="space-y-4">
            <h2 className="text-2xl font-semibold">{group}</h2>
            <div className="grid gap-6 md:grid-cols-2 lg:grid-cols-3">
              {comps.map((c) => (
                <div key={c.name} className="rounded-lg border bg-card p-6">
                  <div className="mb-2 text-sm font-medium text-muted-foreground">{c.name}</div>
                  <c.Component />
                </div>
              ))}
            </div>
          </section>
        ))}
      </div>
    </div>
  );
}

function groupBy<T, K extends string | number>(
  items: T[],
  getKey: (item: T) => K
): [K, T[]][] {
  const map = new Map<K, T[]>();
  for (const it of items) {
    const k = getKey(it);
    const arr = map.get(k) || [];
    arr.push(it);
    map.set(k, arr);
  }
  return Array.from(map.entries());
}
"""


__all__ = [
    "MissingComponent",
    "StaticComponent",
    "RegistryEntry",
    "PreviewRegistry",
    "RegistryBuild",
    "RegistryBuilder",
    "scan_exports",
    "render_registry",
    "render_preview_props",
]
