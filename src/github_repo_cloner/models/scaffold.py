"""
Scaffold file models: Unity assembly definitions and package manifests.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List
import json


@dataclass
class AssemblyDefinition:
    """
    Contents of a Unity ``.asmdef`` file.

    Field names follow the Unity assembly definition schema.
    """

    name: str
    root_namespace: str = ""
    references: List[str] = field(default_factory=list)
    include_platforms: List[str] = field(default_factory=list)
    exclude_platforms: List[str] = field(default_factory=list)
    allow_unsafe_code: bool = False
    override_references: bool = False
    precompiled_references: List[str] = field(default_factory=list)
    auto_referenced: bool = True
    define_constraints: List[str] = field(default_factory=list)
    version_defines: List[Dict[str, Any]] = field(default_factory=list)
    no_engine_references: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rootNamespace": self.root_namespace,
            "references": list(self.references),
            "includePlatforms": list(self.include_platforms),
            "excludePlatforms": list(self.exclude_platforms),
            "allowUnsafeCode": self.allow_unsafe_code,
            "overrideReferences": self.override_references,
            "precompiledReferences": list(self.precompiled_references),
            "autoReferenced": self.auto_referenced,
            "defineConstraints": list(self.define_constraints),
            "versionDefines": list(self.version_defines),
            "noEngineReferences": self.no_engine_references,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=4)


@dataclass
class PackageManifest:
    """
    Contents of a Unity package ``package.json`` file.
    """

    name: str
    display_name: str
    version: str = "1.0.0"
    unity: str = ""
    description: str = ""
    author_name: str = ""
    dependencies: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "displayName": self.display_name,
            "description": self.description,
            "unity": self.unity,
            "author": {"name": self.author_name},
            "dependencies": dict(self.dependencies),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)
