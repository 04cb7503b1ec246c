# backend/catalog_manager/services/image_store.py
"""
Almacenamiento de imágenes de categoría y de catálogo.

Los servicios solo dependen de la interfaz `ImageStore`; la implementación local
guarda los ficheros en un directorio plano.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


class ImageStore(ABC):
    """Interfaz mínima de almacenamiento de imágenes por nombre de fichero."""

    @abstractmethod
    def exists(self, name: str) -> bool: ...

    @abstractmethod
    def write(self, name: str, data: bytes) -> None: ...

    @abstractmethod
    def remove(self, name: str) -> bool: ...

    @abstractmethod
    def list_names(self) -> List[str]: ...


class LocalImageStore(ImageStore):
    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        # Solo el nombre base: un nombre con directorios no puede escapar del almacén
        return self.directory / Path(name).name

    def exists(self, name: str) -> bool:
        return bool(name) and self._path(name).is_file()

    def write(self, name: str, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(name).write_bytes(data)
        logger.debug(f"Imagen guardada: {name} ({len(data)} bytes)")

    def remove(self, name: str) -> bool:
        path = self._path(name)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def list_names(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        return sorted(entry.name for entry in self.directory.iterdir() if entry.is_file())
