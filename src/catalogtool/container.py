"""Text containers: catalogs shipped inside a packaged bundle file.

Some games ship ``catalog.json`` as a text asset inside an asset bundle. The
bundle format is handled by an external backend; this module only defines the
interface the tool needs and a registry for the backend.
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Callable, Optional, Protocol

from .errors import ContainerUnavailableError, E_CONTAINER

__all__ = [
    "TextContainer",
    "ContainerLoader",
    "register_container_backend",
    "register_backend_by_name",
    "load_container",
]


class TextContainer(Protocol):
    def take_string(self) -> str:
        """Return the embedded text payload."""
        ...

    def replace_string(self, text: str) -> None:
        """Replace the embedded text payload."""
        ...

    def save(self, path: Path) -> None:
        """Write the whole container to ``path``."""
        ...


ContainerLoader = Callable[[Path], TextContainer]

_BACKEND: Optional[ContainerLoader] = None


def register_container_backend(loader: Optional[ContainerLoader]) -> None:
    """Install (or with ``None`` remove) the bundle container loader."""
    global _BACKEND
    _BACKEND = loader


def register_backend_by_name(target: str) -> None:
    """Register ``"package.module:callable"`` as the container loader."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ContainerUnavailableError(
            code=E_CONTAINER,
            message=f"Invalid backend '{target}', expected 'module:callable'",
        )
    try:
        module = importlib.import_module(module_name)
        loader = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ContainerUnavailableError(
            code=E_CONTAINER,
            message=f"Could not load container backend '{target}': {e}",
        ) from e
    register_container_backend(loader)


def load_container(path: str | Path) -> TextContainer:
    if _BACKEND is None:
        raise ContainerUnavailableError(
            code=E_CONTAINER,
            message="No bundle container backend is registered;"
            " extract the catalog JSON first or register a backend",
            context={"file": str(path)},
        )
    return _BACKEND(Path(path))
