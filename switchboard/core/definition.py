"""
Definition file discovery and loading.

The definition says which connections to register and which modules to load.
It is read once at startup from JSON files, later files deep-merged over
earlier ones:

    <project_root>/.switchboard
    <project_root>/.switchboard.dev   (or .switchboard.prod in production)
    SWITCHBOARD_DEFINITION_PATH       (when set)

Failing to find or read a definition is fatal to the host.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .config import Settings, get_settings
from .config_resolver import deep_merge
from .exceptions import DefinitionError, DefinitionNotFoundError
from ..schemas.definition import SwitchboardDefinition

logger = logging.getLogger(__name__)

DEFINITION_FILE = ".switchboard"


def definition_search_paths(settings: Settings) -> List[Path]:
    root = Path(settings.PROJECT_ROOT)
    suffix = "prod" if settings.ENVIRONMENT == "production" else "dev"

    paths = [root / DEFINITION_FILE, root / f"{DEFINITION_FILE}.{suffix}"]
    if settings.DEFINITION_PATH:
        paths.append(Path(settings.DEFINITION_PATH))
    return paths


def read_definition_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            document = json.load(fh)
    except OSError as e:
        raise DefinitionError(f"Unable to read definition file: {e}", path=str(path)) from e
    except json.JSONDecodeError as e:
        raise DefinitionError(f"Definition file is not valid JSON: {e}", path=str(path)) from e

    if not isinstance(document, dict):
        raise DefinitionError("Definition file must contain a JSON object", path=str(path))
    return document


def load_definition(
    settings: Optional[Settings] = None,
    paths: Optional[Sequence[Path]] = None,
) -> SwitchboardDefinition:
    """
    Find, merge and validate the definition files.

    Raises:
        DefinitionNotFoundError: None of the search paths exists
        DefinitionError: A file could not be parsed or the result is invalid
    """
    settings = settings or get_settings()
    paths = list(paths) if paths is not None else definition_search_paths(settings)

    found = [path for path in paths if Path(path).is_file()]
    if not found:
        raise DefinitionNotFoundError(paths)

    if settings.DEFINITION_PATH and Path(settings.DEFINITION_PATH) not in found:
        logger.warning(f"Definition path {settings.DEFINITION_PATH} does not exist; ignoring it")

    documents = []
    for path in found:
        logger.info(f"Loading definition from {path}")
        documents.append(read_definition_file(Path(path)))

    try:
        return SwitchboardDefinition.model_validate(deep_merge(*documents))
    except ValidationError as e:
        raise DefinitionError(f"Invalid definition: {e}", path=str(found[-1])) from e
