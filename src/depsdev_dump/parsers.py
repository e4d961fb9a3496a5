from pathlib import Path
from typing import Any, List, Optional

import toml

from .cli_config import ExtractionConfig
from .dependency import DependencyDeclaration
from .error_handling import (
    ErrorCallback,
    ErrorCategory,
    ManifestParseError,
    ManifestUnavailableError,
    MissingSectionError,
    get_error_handler,
    log_filesystem_error,
    log_parsing_error,
)
from .structured_logging import get_extractor_logger, log_extraction

SUPPORTED_MANIFESTS = {"cargo.toml": "cargo_toml"}


def detect_manifest_type(file_path: str) -> str:
    """
    Detect the manifest type based on filename.

    Only Cargo manifests are supported.

    Raises:
        ValueError: If file type is not supported
    """
    filename = Path(file_path).name.lower()

    if filename in SUPPORTED_MANIFESTS:
        return SUPPORTED_MANIFESTS[filename]
    if filename.endswith("cargo.toml"):
        return "cargo_toml"

    raise ValueError(f"Unsupported manifest type: {filename}")


def _classify_entry(
    name: str, value: Any, config: ExtractionConfig
) -> Optional[DependencyDeclaration]:
    # Inline shorthand (serde = "1.0") is reported without a version
    if isinstance(value, str):
        return DependencyDeclaration(name=name, version="")

    if isinstance(value, dict):
        version = value.get("version")
        if isinstance(version, str):
            return DependencyDeclaration(name=name, version=version)
        if config.versionless_tables == "empty":
            return DependencyDeclaration(name=name, version="")
        return None

    return DependencyDeclaration(name=name, version="")


def extract_workspace_dependencies(
    text: str,
    config: Optional[ExtractionConfig] = None,
    source: str = "Cargo.toml",
) -> List[DependencyDeclaration]:
    """
    Extract the shared dependency table of a Cargo workspace manifest.

    Entries of ``[workspace.dependencies]`` are classified by value shape:

    - ``name = "1.0"``: emitted with an empty version
    - ``name = { version = "1.0", ... }``: emitted with that version
    - ``name = { path = "..." }``: skipped unless ``versionless_tables`` is "empty"
    - any other value: emitted with an empty version

    Args:
        text: Full manifest text
        config: Extraction settings, defaults if omitted
        source: Manifest name used in diagnostics

    Returns:
        List[DependencyDeclaration]: Declarations in table order

    Raises:
        ManifestParseError: If the text is not valid TOML
        MissingSectionError: If the workspace section is absent in strict mode
    """
    config = config or ExtractionConfig()
    logger = get_extractor_logger()

    try:
        data = toml.loads(text)
    except toml.TomlDecodeError as e:
        log_parsing_error(
            f"Invalid TOML format in {source}: {e}",
            "parsers",
            "extract_workspace_dependencies",
            file_path=source,
            exception=e,
        )
        raise ManifestParseError(f"Invalid TOML format: {e}") from e

    workspace = data.get(config.workspace_section)
    if not isinstance(workspace, dict):
        if config.strict_workspace_section:
            get_error_handler().error(
                ErrorCategory.PARSING,
                f"No [{config.workspace_section}] section in {source}",
                "parsers",
                "extract_workspace_dependencies",
                details={"file_path": source},
            )
            raise MissingSectionError(config.workspace_section)
        logger.warning(
            "section_missing", manifest=source, section=config.workspace_section
        )
        return []

    dependencies = workspace.get(config.dependencies_key)
    if dependencies is None:
        logger.warning(
            "section_missing",
            manifest=source,
            section=f"{config.workspace_section}.{config.dependencies_key}",
            detail=f"No dependencies found in {source}",
        )
        return []

    if not isinstance(dependencies, dict):
        logger.warning(
            "section_not_a_table",
            manifest=source,
            section=f"{config.workspace_section}.{config.dependencies_key}",
        )
        return []

    declarations = []
    for name, value in dependencies.items():
        if not isinstance(name, str) or not name:
            logger.warning(
                "entry_skipped", manifest=source, dependency=name, reason="empty name"
            )
            continue
        declaration = _classify_entry(name, value, config)
        if declaration is None:
            logger.debug("entry_skipped", manifest=source, dependency=name)
            continue
        declarations.append(declaration)

    log_extraction(source, len(dependencies), len(declarations))
    return declarations


def parse_cargo_manifest(
    worktree,
    config: Optional[ExtractionConfig] = None,
    error_callback: Optional[ErrorCallback] = None,
) -> List[DependencyDeclaration]:
    """
    Read the manifest through a worktree and extract its dependencies.

    Args:
        worktree: Object providing ``read_text_file(path) -> str``
        config: Extraction settings, defaults if omitted
        error_callback: Optional callback for handled parsing and read errors

    Returns:
        List[DependencyDeclaration]: Extracted declarations

    Raises:
        ManifestUnavailableError: If there is no worktree or the file cannot be read
        ManifestParseError: If the manifest cannot be parsed
    """
    config = config or ExtractionConfig()
    error_handler = get_error_handler()
    logger = get_extractor_logger()
    if error_callback:
        error_handler.register_callback(error_callback, ErrorCategory.PARSING)
        error_handler.register_callback(error_callback, ErrorCategory.FILESYSTEM)

    logger.set_context(manifest=config.manifest_name)
    try:
        return _read_and_extract(worktree, config)
    finally:
        logger.clear_context()
        if error_callback:
            error_handler.unregister_callback(error_callback, ErrorCategory.PARSING)
            error_handler.unregister_callback(error_callback, ErrorCategory.FILESYSTEM)


def _read_and_extract(worktree, config: ExtractionConfig) -> List[DependencyDeclaration]:
    try:
        detect_manifest_type(config.manifest_name)
    except ValueError as e:
        raise ManifestUnavailableError(str(e)) from e

    if worktree is None:
        log_filesystem_error(
            "No worktree available", "parsers", "_read_and_extract"
        )
        raise ManifestUnavailableError("No worktree available")

    try:
        content = worktree.read_text_file(config.manifest_name)
    except ManifestUnavailableError as e:
        log_filesystem_error(
            f"Cannot read {config.manifest_name}",
            "parsers",
            "_read_and_extract",
            file_path=config.manifest_name,
            exception=e,
        )
        raise
    except Exception as e:
        # Host worktrees raise their own error types
        log_filesystem_error(
            f"Cannot read {config.manifest_name}",
            "parsers",
            "_read_and_extract",
            file_path=config.manifest_name,
            exception=e,
        )
        raise ManifestUnavailableError(f"Error reading file: {e}") from e

    return extract_workspace_dependencies(content, config, source=config.manifest_name)
