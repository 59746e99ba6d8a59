"""
Named test objects shared between recordings.

An `ObjectRepository` maps logical object names (`"LoginPage.submit"`) to locator
lists. A recorded event that carries an `objectName` but no inline element is
replayed against the repository entry's locators, so one repository update fixes
every recording that uses the object.

The JSON layout is:

```json
{
  "schemaVersion": "1.0",
  "objects": {
    "LoginPage.submit": {
      "name": "LoginPage.submit",
      "objectClass": "button",
      "locators": [{"strategy": "ID", "value": "login"}, {"strategy": "CSS", "value": "#login"}],
      "properties": {"text": "Sign in"}
    }
  }
}
```
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import Field, ValidationError, field_validator, model_validator

from replayninja.replication.errors import RecordingFormatError
from replayninja.schemas.session import ElementDescriptor, LocatorStrategy, _RecordingModel
from replayninja.utils.logging_config import logger

OBJECT_REPOSITORY_FILENAME = "object-repository.json"


class ObjectLocator(_RecordingModel):
    """One locator of a test object; strategies other than id, name, css and xpath are kept but unused."""

    strategy: str
    value: str

    @field_validator("strategy", mode="before")
    @classmethod
    def _lower_case(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    def locator_strategy(self) -> Optional[LocatorStrategy]:
        try:
            return LocatorStrategy(self.strategy)
        except ValueError:
            return None


class TestObject(_RecordingModel):
    """A named element definition."""

    __test__ = False  # not a pytest test class

    name: str
    object_class: Optional[str] = None
    description: Optional[str] = None
    locators: List[ObjectLocator] = Field(default_factory=list)
    properties: Dict[str, str] = Field(default_factory=dict)
    page_url: Optional[str] = None

    def to_descriptor(self) -> Optional[ElementDescriptor]:
        """Build an element descriptor from the usable locators.

        The first locator of each strategy wins. The `text` property becomes the
        descriptor's text hint.

        Returns:
            Optional[ElementDescriptor]: The descriptor, or None if no locator is usable
        """
        fields: Dict[str, str] = {}
        for locator in self.locators:
            strategy = locator.locator_strategy()
            if strategy is None or not locator.value.strip():
                continue
            fields.setdefault(strategy.descriptor_field, locator.value)
        if not fields:
            return None
        return ElementDescriptor(text=self.properties.get("text"), tag_name=self.object_class, **fields)


class ObjectRepository(_RecordingModel):
    """Collection of named test objects."""

    schema_version: str = "1.0"
    description: Optional[str] = None
    objects: Dict[str, TestObject] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _names_from_keys(cls, data: object) -> object:
        # entries may omit "name"; the mapping key is the name then
        if isinstance(data, dict) and isinstance(data.get("objects"), dict):
            objects = {}
            for key, entry in data["objects"].items():
                if isinstance(entry, dict) and "name" not in entry:
                    entry = {**entry, "name": key}
                objects[key] = entry
            data = {**data, "objects": objects}
        return data

    def find(self, name: str) -> Optional[TestObject]:
        return self.objects.get(name)

    def descriptor_for(self, name: str) -> Optional[ElementDescriptor]:
        test_object = self.find(name)
        return test_object.to_descriptor() if test_object is not None else None

    def __contains__(self, name: object) -> bool:
        return name in self.objects

    def __len__(self) -> int:
        return len(self.objects)


def load_object_repository(path: Union[str, Path]) -> ObjectRepository:
    """Load an object repository from a JSON file.

    Args:
        path (Union[str, Path]): Repository file, or a directory holding
            `object-repository.json`

    Returns:
        ObjectRepository: The validated repository

    Raises:
        RecordingFormatError: If the file cannot be read or is not a valid repository
    """
    file_path = Path(path)
    if file_path.is_dir():
        file_path = file_path / OBJECT_REPOSITORY_FILENAME

    try:
        raw = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise RecordingFormatError(f"Object repository '{file_path}' is not UTF-8 text: {e}") from e
    except OSError as e:
        raise RecordingFormatError(f"Cannot read object repository '{file_path}': {e}") from e

    try:
        repository = ObjectRepository.model_validate_json(raw)
    except ValidationError as e:
        raise RecordingFormatError(f"Invalid object repository '{file_path}': {e}") from e

    logger.replay_log(f"📚 Loaded {len(repository)} named objects from {file_path}")
    return repository
