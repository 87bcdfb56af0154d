"""Registry of catalog backends.

Every format registers a ``BackendDescriptor`` when this module is imported. The registry
is read-only afterwards, so lookups are safe from any thread.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from locres.backends.base import Backend
from locres.backends.jsonfile import JsonBackend
from locres.backends.phrases import PhrasesBackend
from locres.backends.resx import ResxBackend
from locres.errors import UnsupportedFormatError

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "resx"


@dataclass(frozen=True)
class BackendDescriptor:
    name: str
    constructor: Callable[..., Backend]
    detector: Callable[[Path], bool]
    aliases: tuple[str, ...] = ()

    def matches(self, name: str) -> bool:
        name = name.lower()
        return name == self.name or name in self.aliases


# Resolution order: most specific format first.
_REGISTRY: list[BackendDescriptor] = []


def register_backend(descriptor: BackendDescriptor) -> None:
    if any(existing.matches(descriptor.name) for existing in _REGISTRY):
        raise ValueError(f"Backend '{descriptor.name}' is already registered")
    _REGISTRY.append(descriptor)


for _backend in (PhrasesBackend, ResxBackend, JsonBackend):
    register_backend(
        BackendDescriptor(_backend.name, _backend, _backend.can_handle, _backend.aliases)
    )


def _options(descriptor: BackendDescriptor, config: dict | None) -> dict:
    if not config:
        return {}
    return dict(config.get(descriptor.name) or {})


def get_backend(
    name: str,
    config: dict | None = None,
    language_names: dict[str, str] | None = None,
) -> Backend:
    """Construct the backend registered under ``name`` or one of its aliases.

    ``config`` is the ``backend`` section of the configuration; the sub-mapping named
    after the backend is handed to it as format options.
    """
    for descriptor in _REGISTRY:
        if descriptor.matches(name):
            return descriptor.constructor(_options(descriptor, config), language_names)
    raise UnsupportedFormatError(
        f"Backend '{name}' is not supported. Available: {', '.join(get_available_backends())}"
    )


def resolve_from_path(
    path: str | Path,
    config: dict | None = None,
    language_names: dict[str, str] | None = None,
) -> Backend:
    path = Path(path)
    if path.exists():
        for descriptor in _REGISTRY:
            if descriptor.detector(path):
                logger.debug(f"Detected {descriptor.name} catalog in {path}")
                return descriptor.constructor(_options(descriptor, config), language_names)

    default = (config or {}).get("default") or DEFAULT_BACKEND
    logger.debug(f"No catalog format detected in {path}, using {default}")
    return get_backend(default, config, language_names)


def get_available_backends() -> list[str]:
    return [descriptor.name for descriptor in _REGISTRY]


def is_backend_available(name: str) -> bool:
    return any(descriptor.matches(name) for descriptor in _REGISTRY)
