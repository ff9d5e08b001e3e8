"""Plugin registration and discovery utilities."""

from .registry import COMPONENT_KINDS, ComponentKind, ComponentManifest, PluginRegistry, build_default_registry

__all__ = [
    "COMPONENT_KINDS",
    "ComponentKind",
    "ComponentManifest",
    "PluginRegistry",
    "build_default_registry",
]
