"""Fleet documents on disk: loading into a store and atomic snapshots."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import List, Union

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from overhaul_monitor.exceptions import OverhaulMonitorError
from overhaul_monitor.models.fleet import Aircraft, Component
from overhaul_monitor.models.parameter import MonitoredParameter
from overhaul_monitor.store.memory import InMemoryFleetStore

log = structlog.get_logger()


class FleetFileError(OverhaulMonitorError):
    """A fleet document is missing, unreadable or invalid."""

    exit_code: int = 1


class FleetDocument(BaseModel):
    """Top-level shape of a fleet file (YAML or JSON)."""

    model_config = ConfigDict(extra="forbid")

    aircraft: List[Aircraft] = Field(default_factory=list)
    components: List[Component] = Field(default_factory=list)
    parameters: List[MonitoredParameter] = Field(default_factory=list)


def load_fleet(path: Union[str, Path]) -> InMemoryFleetStore:
    """Load a fleet document into a new in-memory store.

    YAML is a superset of JSON, so one parser reads both formats.

    Raises:
        FleetFileError: If the file is missing, unparseable or invalid.
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError:
        raise FleetFileError(
            f"Fleet file not found: {path}",
            hint="Pass --fleet or set OVERHAUL_FLEET_FILE.",
        ) from None
    except yaml.YAMLError as e:
        raise FleetFileError(f"Cannot parse fleet file {path}: {e}") from e

    try:
        document = FleetDocument.model_validate(data)
    except ValidationError as e:
        raise FleetFileError(
            f"Invalid fleet file {path}: {e.error_count()} validation error(s)\n{e}"
        ) from e

    store = InMemoryFleetStore()
    for aircraft in document.aircraft:
        store.add_aircraft(aircraft)
    for component in document.components:
        store.add_component(component)
    for parameter in document.parameters:
        store.add_parameter(parameter)

    log.info("fleet_loaded", path=str(path), **store.stats)
    return store


YAML_SUFFIXES = (".yaml", ".yml")


def save_fleet(store: InMemoryFleetStore, path: Union[str, Path]) -> Path:
    """Write a snapshot of the store atomically, in the format the path names.

    ``.yaml`` and ``.yml`` paths get YAML so a hand-maintained fleet file
    stays YAML. Anything else gets JSON. Uses temp file + rename so a
    crash never leaves a half-written file.

    Raises:
        PermissionError: If the target directory is not writable.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = store.dump()
    fmt = "yaml" if path.suffix.lower() in YAML_SUFFIXES else "json"
    if fmt == "yaml":
        content = yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
    else:
        content = json.dumps(data, indent=2) + "\n"

    temp_fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=".tmp-fleet-",
        suffix=path.suffix or ".json",
    )
    try:
        with open(temp_fd, "w", encoding="utf-8") as f:
            f.write(content)
        shutil.move(temp_path, path)
        log.info("fleet_saved", path=str(path), format=fmt, **store.stats)
    except PermissionError:
        Path(temp_path).unlink(missing_ok=True)
        log.error("fleet_write_permission_denied", path=str(path.parent))
        raise
    except Exception:
        Path(temp_path).unlink(missing_ok=True)
        raise
    return path
