"""
Loading and saving recorded sessions.

Recorded sessions are stored as JSON documents. The schema version is checked
before anything else is parsed, so an incompatible document fails fast with
`UnsupportedSchemaVersion` instead of being half-understood.

## Usage Examples

```python
from replayninja.schemas.recording_io import load_recorded_session

session = load_recorded_session("./recordings/login_flow.json")
print(f"{session.session_id}: {len(session.events)} steps")
```
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError

from replayninja.replication.errors import RecordingFormatError, UnsupportedSchemaVersion
from replayninja.schemas.session import SUPPORTED_SCHEMA_VERSIONS, RecordedSession
from replayninja.utils.logging_config import logger


def parse_recorded_session(document: Union[str, bytes, Dict[str, Any]]) -> RecordedSession:
    """Parse a recorded session from a JSON string or an already-decoded dictionary.

    Args:
        document (Union[str, bytes, Dict[str, Any]]): JSON text or decoded document

    Returns:
        RecordedSession: The validated, immutable session

    Raises:
        UnsupportedSchemaVersion: If the version field is missing or not supported
        RecordingFormatError: If the document is not UTF-8 JSON or fails validation
    """
    if isinstance(document, (str, bytes)):
        try:
            data = json.loads(document)
        except UnicodeDecodeError as e:
            raise RecordingFormatError(f"Recorded session is not UTF-8 text: {e}") from e
        except json.JSONDecodeError as e:
            raise RecordingFormatError(f"Recorded session is not valid JSON: {e}") from e
    else:
        data = document

    if not isinstance(data, dict):
        raise RecordingFormatError(
            f"Recorded session must be a JSON object, got {type(data).__name__}"
        )

    version = data.get("schemaVersion", data.get("schema_version"))
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        raise UnsupportedSchemaVersion(version, SUPPORTED_SCHEMA_VERSIONS)

    try:
        return RecordedSession.model_validate(data)
    except ValidationError as e:
        raise RecordingFormatError(f"Invalid recorded session: {e}") from e


def load_recorded_session(path: Union[str, Path]) -> RecordedSession:
    """Load a recorded session from a JSON file.

    Args:
        path (Union[str, Path]): Path of the recording file

    Returns:
        RecordedSession: The validated, immutable session

    Raises:
        RecordingFormatError: If the file cannot be read or parsed
        UnsupportedSchemaVersion: If the recording declares an unsupported version
    """
    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw = f.read()
    except UnicodeDecodeError as e:
        raise RecordingFormatError(f"Recorded session '{file_path}' is not UTF-8 text: {e}") from e
    except OSError as e:
        raise RecordingFormatError(f"Cannot read recorded session '{file_path}': {e}") from e

    session = parse_recorded_session(raw)
    logger.replay_log(
        f"📂 Loaded recording '{session.session_id}' ({len(session.events)} steps) from {file_path}"
    )
    return session


def save_recorded_session(session: RecordedSession, path: Union[str, Path]) -> Path:
    """Write a recorded session as camelCase JSON.

    Args:
        session (RecordedSession): Session to write
        path (Union[str, Path]): Destination file; parent directories are created

    Returns:
        Path: The written file path
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        f.write(session.model_dump_json(by_alias=True, exclude_none=True, indent=2))
    return file_path
