"""
Load manifest reading.

A manifest lists, in order, which data file loads into which table. CSV
manifests need `table` and `filename` columns (other columns are ignored).
JSON and YAML manifests hold a list of `{table, filename}` entries, either at
the top level or under a `files` key. Relative file names are resolved
against the data directory, which defaults to the manifest's directory.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import ConfigurationError
from .models import LoadTask


logger = logging.getLogger(__name__)


def _read_entries(path: Path) -> List[Dict[str, Any]]:
    suffix = path.suffix.lower()
    with open(path, 'r', encoding='utf-8', newline='') as f:
        if suffix == '.csv':
            return list(csv.DictReader(f))
        if suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(f)
        elif suffix == '.json':
            data = json.load(f)
        else:
            raise ConfigurationError(f"Unsupported manifest format: {path.suffix}")
    if isinstance(data, dict):
        data = data.get('files')
    if not isinstance(data, list):
        raise ConfigurationError(f"Manifest {path} must contain a list of table/filename entries")
    return data


def load_manifest(manifest_path: Union[str, Path], data_dir: Optional[Union[str, Path]] = None) -> List[LoadTask]:
    """
    Read a manifest into an ordered list of LoadTasks.

    Raises:
        ConfigurationError: If the manifest is missing, unparseable or incomplete
    """
    path = Path(manifest_path)
    if not path.exists():
        raise ConfigurationError(f"Manifest file not found: {path}")
    base = Path(data_dir) if data_dir else path.parent

    try:
        entries = _read_entries(path)
    except (json.JSONDecodeError, yaml.YAMLError, csv.Error, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Failed to parse manifest file {path}: {e}")

    tasks = []
    for n, entry in enumerate(entries, 1):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Manifest {path} entry {n} is not a mapping")
        table = (entry.get('table') or '').strip()
        filename = (entry.get('filename') or entry.get('file') or '').strip()
        if not table or not filename:
            raise ConfigurationError(f"Manifest {path} entry {n} needs both a table and a filename")
        tasks.append(LoadTask(table=table, file_path=str(base / filename)))

    logger.info(f"Read {len(tasks)} load tasks from {path}")
    return tasks
