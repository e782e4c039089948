from __future__ import annotations

__all__ = [
    "Closing",
    "Container",
    "Manage",
    "NotReady",
    "Provider",
    "Provide",
    "as_",
    "inject",
    "providers",
    "containers",
    "register_loader_containers",
]

import functools
import importlib.abc
import importlib.machinery
import sys
import types
import typing as t

import dependency_injector.containers as containers
import dependency_injector.providers as providers
import dependency_injector.wiring as wiring
from dependency_injector.containers import Container
from dependency_injector.providers import Provider
from dependency_injector.wiring import ClassGetItemMeta, Closing, Provide, TypeModifier

from progress89.lib.sentinel import NotReady

P = t.ParamSpec("P")
TReturn = t.TypeVar("TReturn")
T = t.TypeVar("T")
TAs = t.TypeVar("TAs")


def inject(fn: t.Callable[P, TReturn]) -> t.Callable[P, TReturn]:
    reference_injections, reference_closing = wiring._fetch_reference_injections(fn)  # pyright: ignore [reportPrivateUsage] noqa: E501
    patched = wiring._get_patched(fn, reference_injections, reference_closing)  # pyright: ignore [reportPrivateUsage] noqa: E501

    # route handlers keep the original globals so that FastAPI can resolve
    # forward references in their signatures
    if fn.__module__.startswith("progress89.web") and hasattr(fn, "__globals__"):
        wrapper = functools.wraps(fn, updated=("__globals__",))
        return wrapper(patched)
    return patched


class Manage(object, metaclass=ClassGetItemMeta):
    """`Manage["storage.persistent.session"]` injects a provider and closes it after use"""

    def __new__(cls, provider: Provider[T] | Container | str):
        return Closing[Provide[provider]]

    @classmethod
    def __class_getitem__(cls, item: Provider[T] | Container | str):
        return cls(item)


def as_(type_: type[TAs]) -> TypeModifier:
    """Typed replacement for wiring.as_"""
    return TypeModifier(type_)


def _wiring_loader(base: type[importlib.abc.Loader], loader: AutoLoader) -> type[importlib.abc.Loader]:
    """Subclass a file loader so that each module it executes is wired afterwards"""

    def exec_module(self: importlib.abc.Loader, module: types.ModuleType) -> None:
        base.exec_module(self, module)
        loader.wire_module(module)

    return type(f"Wiring{base.__name__}", (base,), {"exec_module": exec_module})


class AutoLoader(object):
    """
    Import hook which wires modules to registered containers as they are
    loaded. Containers may be scoped to modules under named packages.
    """

    containers: dict[str | None, list[Container]]
    _path_hook: t.Callable[[str], importlib.abc.PathEntryFinder] | None = None

    def __init__(self) -> None:
        self.containers = {}

    def register_containers(self, *containers: Container, packages: t.Sequence[str] | None) -> None:
        for pkg in packages or [None]:
            self.containers.setdefault(pkg, []).extend(containers)
        self.install()

    def wire_module(self, module: types.ModuleType) -> None:
        for package, ls in self.containers.items():
            if package is not None and not module.__name__.startswith(package):
                continue
            for container in ls:
                container.wire(modules=[module])

    @property
    def installed(self) -> bool:
        return self._path_hook in sys.path_hooks

    def install(self) -> None:
        if self.installed:
            return

        self._path_hook = importlib.machinery.FileFinder.path_hook(
            (importlib.machinery.ExtensionFileLoader, importlib.machinery.EXTENSION_SUFFIXES),
            (_wiring_loader(importlib.machinery.SourceFileLoader, self), importlib.machinery.SOURCE_SUFFIXES),
            (_wiring_loader(importlib.machinery.SourcelessFileLoader, self), importlib.machinery.BYTECODE_SUFFIXES),
        )
        sys.path_hooks.insert(0, self._path_hook)
        sys.path_importer_cache.clear()
        importlib.invalidate_caches()


_loader = AutoLoader()


def register_loader_containers(*containers: Container, packages: t.Sequence[str] | None = None) -> None:
    """Wire containers into every module subsequently imported from `packages`."""
    _loader.register_containers(*containers, packages=packages)
