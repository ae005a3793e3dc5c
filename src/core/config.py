"""
SwiftInstall - Configuration Store
Persists the user's software list and settings as JSON.
"""

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "swiftinstall" / "config.json"

DEFAULT_CATEGORY = "Other"


@dataclass(frozen=True)
class InstallRequest:
    """A package the user wants installed."""
    name: str
    id: str = ""
    category: str = DEFAULT_CATEGORY
    package: str = ""       # Legacy identifier, used when id is empty

    @property
    def package_id(self) -> str:
        """Identifier handed to the backend."""
        return self.id or self.package

    def to_dict(self) -> dict:
        data = asdict(self)
        if not data["package"]:
            del data["package"]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "InstallRequest":
        package_id = data.get("id") or ""
        legacy = data.get("package") or ""
        return cls(
            name=data.get("name") or package_id or legacy,
            id=package_id,
            category=data.get("category") or DEFAULT_CATEGORY,
            package=legacy,
        )

    @classmethod
    def from_id(cls, package_id: str) -> "InstallRequest":
        """Request built from a bare identifier given on the command line."""
        return cls(name=package_id, id=package_id)


class SoftwareConfig:
    """
    JSON-backed configuration.

    Layout:
        {
          "language": "en",
          "auto_update_check": false,
          "backends": {"apt": {"skip_patterns": {...}}},
          "software": [{"name": "Git", "id": "Git.Git", "category": "Dev"}]
        }
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            config_path: Path to the JSON file. Defaults to
                        ~/.config/swiftinstall/config.json
        """
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self.data = self._load()

    def _default_config(self) -> dict:
        return {
            "language": "en",
            "auto_update_check": False,
            "auto_update_prompted": False,
            "env_checked": False,
            "backends": {},
            "software": [],
        }

    def _load(self) -> dict:
        """Load configuration from file or use defaults."""
        data = self._default_config()
        if self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    data.update(loaded)
                else:
                    logger.warning(f"Ignoring malformed config {self.config_path}")
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Failed to load config: {e}")

        if not isinstance(data.get("software"), list):
            logger.warning(f"Ignoring malformed software list in {self.config_path}")
            data["software"] = []
        if not isinstance(data.get("backends"), dict):
            logger.warning(f"Ignoring malformed backend settings in {self.config_path}")
            data["backends"] = {}
        return data

    def reload(self) -> None:
        """Re-read the file, dropping unsaved changes."""
        self.data = self._load()

    def save(self) -> None:
        """
        Write the configuration to disk.

        Raises:
            OSError: If the file cannot be written.
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(self.data, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved config to {self.config_path}")

    # Settings

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def get_bool(self, key: str) -> bool:
        return bool(self.data.get(key, False))

    def backend_config(self, name: str) -> dict:
        """Per-backend overrides (executable, skip rules)."""
        section = self.data.get("backends", {}).get(name, {})
        return dict(section) if isinstance(section, dict) else {}

    # Software list

    def get_software_list(self) -> list[InstallRequest]:
        return [
            InstallRequest.from_dict(item)
            for item in self.data.get("software", [])
            if isinstance(item, dict)
        ]

    def _set_software_list(self, requests: list[InstallRequest]) -> None:
        self.data["software"] = [r.to_dict() for r in requests]

    def add_software(self, request: InstallRequest) -> None:
        """Append a package, replacing an existing entry with the same id."""
        software = self.get_software_list()
        new_id = request.package_id.lower()
        for index, existing in enumerate(software):
            if new_id and existing.package_id.lower() == new_id:
                logger.warning(f"Duplicate ID {request.package_id} - updating existing entry")
                software[index] = request
                self._set_software_list(software)
                return
        software.append(request)
        self._set_software_list(software)

    def update_software(self, index: int, request: InstallRequest) -> None:
        software = self.get_software_list()
        if not 0 <= index < len(software):
            raise IndexError(f"no software at index {index}")
        software[index] = request
        self._set_software_list(software)

    def remove_software(self, index: int) -> InstallRequest:
        software = self.get_software_list()
        if not 0 <= index < len(software):
            raise IndexError(f"no software at index {index}")
        removed = software.pop(index)
        self._set_software_list(software)
        return removed

    def import_from_file(self, path: Path) -> list[InstallRequest]:
        """
        Replace the software list with one read from a JSON file.

        The file holds either a list of entries or an object with a
        'software' list.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the file is not a valid software list.
        """
        with open(path, encoding="utf-8") as f:
            loaded = json.load(f)
        items = loaded.get("software") if isinstance(loaded, dict) else loaded
        if not isinstance(items, list):
            raise ValueError(f"{path} does not contain a software list")
        requests = [InstallRequest.from_dict(item) for item in items if isinstance(item, dict)]
        self._set_software_list(requests)
        logger.info(f"Imported {len(requests)} packages from {path}")
        return requests
