# core/registry.py — Module Registry for dependency injection
#
# Modules advertise the services they provide (e.g. the email module provides
# the remote function client) and look up what they need by interface name.
# validate_dependencies() checks every REQUIRES declaration at startup.

import logging
from typing import Any

log = logging.getLogger("shop.registry")


class ModuleRegistry:
    """
    Lightweight dependency injection registry.

    One instance is built per app in create_app() and kept on app.state, so
    tests can build an app with their own providers.
    """

    def __init__(self):
        self._providers: dict[str, Any] = {}
        self._declared_requires: list[tuple[str, str]] = []  # (module_id, interface)

    def register_provider(self, interface_name: str, impl: Any) -> None:
        """Register an implementation for the named interface (last writer wins)."""
        existing = self._providers.get(interface_name)
        if existing is not None and existing is not impl:
            log.warning(
                f"Interface '{interface_name}' already registered by "
                f"{type(existing).__name__!r}; overwriting with "
                f"{type(impl).__name__!r}"
            )
        self._providers[interface_name] = impl
        log.debug(f"Registered provider for '{interface_name}': {type(impl).__name__}")

    def get_provider(self, interface_name: str) -> Any:
        """Return the registered provider for an interface, or None."""
        provider = self._providers.get(interface_name)
        if provider is None:
            log.warning(
                f"No provider registered for interface '{interface_name}'. "
                "Check that the required module is loaded."
            )
        return provider

    def record_requires(self, module_id: str, requires: list[str]) -> None:
        """Record the REQUIRES list for a module so validate_dependencies() can check it."""
        for iface in requires:
            self._declared_requires.append((module_id, iface))

    def validate_dependencies(self) -> bool:
        """Return True if every REQUIRES declaration has a provider; log the gaps otherwise."""
        missing = [
            (module_id, iface)
            for module_id, iface in self._declared_requires
            if iface not in self._providers
        ]
        for module_id, interface_name in missing:
            log.error(
                f"Unsatisfied dependency: module '{module_id}' requires "
                f"'{interface_name}' but no provider is registered."
            )
        if not missing:
            log.info(
                f"All module dependencies satisfied "
                f"({len(self._declared_requires)} declarations checked)."
            )
        return not missing

    @property
    def providers(self) -> dict[str, Any]:
        """Read-only view of all registered providers."""
        return dict(self._providers)
