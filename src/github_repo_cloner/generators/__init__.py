"""
Scaffold generators for cloned repositories.
"""

from .scaffold_generator import (
    package_name_for, build_assembly_definition, build_package_manifest,
    manifest_from_config, write_assembly_definition, write_package_manifest,
    copy_template_files, ASSEMBLY_DEFINITION_EXTENSION,
    PACKAGE_MANIFEST_FILENAME, META_EXTENSION
)

__all__ = [
    "package_name_for",
    "build_assembly_definition",
    "build_package_manifest",
    "manifest_from_config",
    "write_assembly_definition",
    "write_package_manifest",
    "copy_template_files",
    "ASSEMBLY_DEFINITION_EXTENSION",
    "PACKAGE_MANIFEST_FILENAME",
    "META_EXTENSION"
]
