# In src/depsdev_dump/dependency.py
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class DependencyDeclaration:
    """A single entry of a manifest's dependency table."""

    name: str
    version: str = ""

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("Dependency name must be a non-empty string")
        if not isinstance(self.version, str):
            raise ValueError("Dependency version must be a string")

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "version": self.version}
