"""
Generators for the files scaffolded into freshly cloned repositories.

The ``build_*`` functions are pure and only compute file contents; the
``write_*`` and ``copy_*`` functions touch the file system and raise
:class:`ScaffoldError` on failure.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Union

from ..config import ScaffoldConfig
from ..error_handling import ScaffoldError
from ..models import AssemblyDefinition, PackageManifest

logger = logging.getLogger(__name__)

ASSEMBLY_DEFINITION_EXTENSION = ".asmdef"
PACKAGE_MANIFEST_FILENAME = "package.json"
META_EXTENSION = ".meta"


def package_name_for(folder_name: str, exclude_string: str = "Unity") -> str:
    """
    Derive the package name from a repository folder name.

    Only the first occurrence of ``exclude_string`` is removed, case-sensitively:
    ``UnityFoo`` becomes ``Foo`` while ``unityFoo`` is left untouched.
    """
    if not exclude_string:
        return folder_name
    return folder_name.replace(exclude_string, "", 1)


def build_assembly_definition(logical_name: str, root_namespace: str) -> AssemblyDefinition:
    """
    Build an assembly definition with the fixed defaults: safe code only,
    auto-referenced, no engine-reference or reference overrides, and empty
    reference, platform and define-constraint lists.
    """
    return AssemblyDefinition(name=logical_name, root_namespace=root_namespace)


def build_package_manifest(
    package_name: str,
    organization_name: str,
    author_name: str,
    unity_version: str,
    description: str,
    dependency_name: Optional[str] = None,
    dependency_version: str = "1.0.0"
) -> PackageManifest:
    """
    Build a Unity package manifest.

    Args:
        package_name: Package name derived from the repository folder
        organization_name: Organization used for the reverse-domain name
        author_name: Manifest author
        unity_version: Minimum Unity version
        description: Package description
        dependency_name: Single dependency to declare (none if empty)
        dependency_version: Version of that dependency

    Returns:
        PackageManifest instance
    """
    dependencies = {dependency_name: dependency_version} if dependency_name else {}
    return PackageManifest(
        name=f"com.{organization_name}.{package_name}".lower(),
        display_name=f"{organization_name} {package_name}",
        version="1.0.0",
        unity=unity_version,
        description=description,
        author_name=author_name,
        dependencies=dependencies
    )


def manifest_from_config(package_name: str, config: ScaffoldConfig) -> PackageManifest:
    return build_package_manifest(
        package_name=package_name,
        organization_name=config.organization_name,
        author_name=config.author_name,
        unity_version=config.unity_version,
        description=config.description,
        dependency_name=config.dependency_name,
        dependency_version=config.dependency_version
    )


def write_assembly_definition(repo_path: Union[str, Path], package_name: str, organization_name: str) -> Path:
    """
    Replace every assembly definition in the repository root with a single
    ``{organization}.{package}.asmdef``.

    Returns:
        Path of the written file

    Raises:
        ScaffoldError: If an existing file cannot be deleted or the new one written
    """
    repo_path = Path(repo_path)
    logical_name = f"{organization_name}.{package_name}"
    target = repo_path / f"{logical_name}{ASSEMBLY_DEFINITION_EXTENSION}"

    try:
        for existing in sorted(repo_path.glob(f"*{ASSEMBLY_DEFINITION_EXTENSION}")):
            if existing.is_file():
                existing.unlink()
                logger.info(f"Deleted existing assembly definition: {existing}")

        definition = build_assembly_definition(logical_name, organization_name)
        target.write_text(definition.to_json(), encoding="utf-8")
    except OSError as e:
        raise ScaffoldError(
            f"Failed to create assembly definition {target.name}",
            step="assembly_definition",
            file_path=str(target),
            cause=e
        ) from e

    logger.info(f"Created assembly definition {target.name}")
    return target


def write_package_manifest(repo_path: Union[str, Path], manifest: PackageManifest) -> Path:
    """
    Write ``package.json`` at the repository root, overwriting any existing file.

    Raises:
        ScaffoldError: If the file cannot be written
    """
    target = Path(repo_path) / PACKAGE_MANIFEST_FILENAME
    try:
        target.write_text(manifest.to_json(), encoding="utf-8")
    except OSError as e:
        raise ScaffoldError(
            "Failed to write package manifest",
            step="package_manifest",
            file_path=str(target),
            cause=e
        ) from e

    logger.info(f"Created package manifest {manifest.name}")
    return target


def copy_template_files(source: Union[str, Path], destination: Union[str, Path]) -> List[Path]:
    """
    Recursively copy template files into a repository.

    Files with the ``.meta`` extension are never copied; existing files with
    the same relative path are overwritten. A missing template folder is
    logged as a warning and nothing is copied.

    Returns:
        Destination paths of the copied files

    Raises:
        ScaffoldError: If a directory cannot be created or a file copied
    """
    source = Path(source)
    destination = Path(destination)

    if not source.is_dir():
        logger.warning(f"Template folder not found: {source}")
        return []

    copied = []
    for file_path in sorted(source.rglob("*")):
        if not file_path.is_file() or file_path.suffix == META_EXTENSION:
            continue

        target = destination / file_path.relative_to(source)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(file_path, target)
        except OSError as e:
            raise ScaffoldError(
                f"Failed to copy template file {file_path.name}",
                step="template_files",
                file_path=str(target),
                cause=e
            ) from e
        copied.append(target)

    logger.debug(f"Copied {len(copied)} template files into {destination}")
    return copied
