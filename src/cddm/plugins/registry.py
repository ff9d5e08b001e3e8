"""Discoverable tasks and belief variants.

Modules advertise components through a module-level ``PLUGIN_MANIFESTS``
list. :func:`build_default_registry` scans the built-in ``cddm.belief`` and
``cddm.tasks`` packages; callers may discover additional packages the same
way.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import importlib
import pkgutil
from types import ModuleType
from typing import Any, Callable, Literal

ComponentKind = Literal["task", "belief"]
COMPONENT_KINDS: tuple[ComponentKind, ...] = ("task", "belief")


@dataclass(frozen=True, slots=True)
class ComponentManifest:
    """Description of one constructible component.

    Parameters
    ----------
    kind : {"task", "belief"}
        Whether the factory builds a decision task or a belief engine.
    component_id : str
        Identifier used on the command line and in configs. Unique within
        ``kind``.
    factory : Callable[..., Any]
        Keyword-only constructor of the component.
    version : str, optional
        Version label of the component's behavior.
    description : str, optional
        One-line summary shown in listings.
    """

    kind: ComponentKind
    component_id: str
    factory: Callable[..., Any]
    version: str = "1.0.0"
    description: str = ""


class PluginRegistry:
    """Manifests grouped by kind, filled explicitly or by package scanning."""

    def __init__(self) -> None:
        self._by_kind: dict[ComponentKind, dict[str, ComponentManifest]] = {kind: {} for kind in COMPONENT_KINDS}

    def register(self, manifest: ComponentManifest) -> None:
        """Add ``manifest``; registering an identical manifest again is a no-op.

        Raises
        ------
        ValueError
            If the kind is unknown, or another manifest already uses the
            same kind and identifier.
        """

        if manifest.kind not in self._by_kind:
            raise ValueError(f"unknown component kind {manifest.kind!r}; expected one of {COMPONENT_KINDS}")
        slot = self._by_kind[manifest.kind]
        existing = slot.setdefault(manifest.component_id, manifest)
        if existing != manifest:
            raise ValueError(f"manifest conflict for {manifest.kind}:{manifest.component_id}; already registered")

    def get(self, kind: ComponentKind, component_id: str) -> ComponentManifest:
        """Return the manifest registered as ``kind:component_id``.

        Raises
        ------
        KeyError
            If nothing is registered under that key. The message lists the
            known identifiers.
        """

        try:
            return self._by_kind[kind][component_id]
        except KeyError:
            raise KeyError(
                f"no {kind} component {component_id!r}; known: {list(self.ids(kind))}"
            ) from None

    def ids(self, kind: ComponentKind) -> tuple[str, ...]:
        """Sorted identifiers of one kind."""

        return tuple(sorted(self._by_kind.get(kind, {})))

    def list(self, kind: ComponentKind | None = None) -> tuple[ComponentManifest, ...]:
        """Manifests sorted by kind, then identifier."""

        kinds = COMPONENT_KINDS if kind is None else (kind,)
        return tuple(
            self._by_kind[name][component_id]
            for name in sorted(kinds)
            for component_id in self.ids(name)
        )

    def create(self, kind: ComponentKind, component_id: str, **kwargs: Any) -> Any:
        return self.get(kind, component_id).factory(**kwargs)

    def create_task(self, component_id: str, **kwargs: Any) -> Any:
        """Build a task; ``kwargs`` go to the task factory unchanged."""

        return self.create("task", component_id, **kwargs)

    def create_belief(self, component_id: str, **kwargs: Any) -> Any:
        """Build a belief engine; ``kwargs`` go to the belief factory unchanged."""

        return self.create("belief", component_id, **kwargs)

    def discover(self, package_name: str) -> tuple[ComponentManifest, ...]:
        """Import ``package_name`` and its submodules and register their manifests.

        Parameters
        ----------
        package_name : str
            Dotted name of a package or plain module.

        Returns
        -------
        tuple[ComponentManifest, ...]
            Manifests found during this scan, in module order.

        Raises
        ------
        TypeError
            If a ``PLUGIN_MANIFESTS`` entry is not a :class:`ComponentManifest`.
        """

        found: list[ComponentManifest] = []
        for module in _iter_package_modules(package_name):
            for manifest in getattr(module, "PLUGIN_MANIFESTS", ()):
                if not isinstance(manifest, ComponentManifest):
                    raise TypeError(f"{module.__name__}.PLUGIN_MANIFESTS must contain ComponentManifest objects")
                self.register(manifest)
                found.append(manifest)
        return tuple(found)


def _iter_package_modules(package_name: str) -> Iterator[ModuleType]:
    package = importlib.import_module(package_name)
    yield package
    search_path = getattr(package, "__path__", None)
    if search_path is None:
        return
    for module_info in pkgutil.walk_packages(search_path, prefix=f"{package.__name__}."):
        yield importlib.import_module(module_info.name)


def build_default_registry() -> PluginRegistry:
    """Registry holding the built-in tasks and belief variants."""

    registry = PluginRegistry()
    for package_name in ("cddm.belief", "cddm.tasks"):
        registry.discover(package_name)
    return registry


__all__ = [
    "COMPONENT_KINDS",
    "ComponentKind",
    "ComponentManifest",
    "PluginRegistry",
    "build_default_registry",
]
