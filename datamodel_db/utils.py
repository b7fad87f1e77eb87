"""
Utility functions for common patterns across the data model provisioning system.
"""

import logging
from typing import Optional, Tuple

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


# PEDSnet vocabulary tables, together with the most recent minor version for
# which this list has been verified.
PEDSNET_MINOR_VERSION_SUPPORTED = "2.2"
PEDSNET_VOCAB_TABLES_PATTERN = (
    r"^(?:vocabulary|concept|concept_ancestor|concept_class|concept_relationship"
    r"|concept_synonym|domain|drug_strength|relationship|source_to_concept_map)$"
)


def join_url_path(base: str, path: str) -> str:
    """
    Join a base URL and a path with exactly one slash between them.

    Examples:
        join_url_path('http://host/', '/a/') -> 'http://host/a/'
        join_url_path('http://host', 'a/') -> 'http://host/a/'
    """
    return base.rstrip("/") + "/" + path.lstrip("/")


def version_to_shorthand(version: str) -> str:
    """
    Given a version string such as "X.Y.Z" or "X.Y", return "XY".

    Args:
        version: Model version

    Returns:
        Major and minor components concatenated, e.g. "22" for "2.2.3"

    Raises:
        ConfigurationError: If the version does not have two or three parts
    """
    parts = (version or "").split(".")
    if len(parts) not in (2, 3) or not all(parts):
        raise ConfigurationError(f"Version string must be like X.Y or X.Y.Z, not '{version}'")
    return parts[0] + parts[1]


def database_name(model_version: str, prefix: str = "pedsnet_dcc_v") -> str:
    """Return the conventional database name for a version, e.g. 'pedsnet_dcc_v22' for '2.2.0'."""
    return f"{prefix}{version_to_shorthand(model_version)}"


def version_matches_minor_version(version: str, reference_minor_version: str) -> bool:
    """True if a version X.Y[.Z] has X.Y equal to the reference A.B."""
    parts = version.split(".")
    return ".".join(parts[:2]) == reference_minor_version


def resolve_model_alias(model: str, model_version: str, include_tables: Optional[str],
                        exclude_tables: Optional[str]) -> Tuple[str, Optional[str], Optional[str]]:
    """
    Resolve the pedsnet-core / pedsnet-vocab aliases.

    pedsnet-core is the pedsnet model without its vocabulary tables and
    pedsnet-vocab is the vocabulary tables only. The alias pattern is applied
    only when the caller configured neither an include nor an exclude pattern.

    Returns:
        (model, include_tables, exclude_tables)
    """
    if model not in ("pedsnet-core", "pedsnet-vocab"):
        return model, include_tables, exclude_tables

    if not include_tables and not exclude_tables:
        if model == "pedsnet-core":
            exclude_tables = PEDSNET_VOCAB_TABLES_PATTERN
        else:
            include_tables = PEDSNET_VOCAB_TABLES_PATTERN
        if not version_matches_minor_version(model_version, PEDSNET_MINOR_VERSION_SUPPORTED):
            logger.warning(
                f"The {model} vocabulary table list is only verified for the "
                f"{PEDSNET_MINOR_VERSION_SUPPORTED} version series, not {model_version}"
            )

    return "pedsnet", include_tables, exclude_tables
