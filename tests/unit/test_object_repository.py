import json
from pathlib import Path
from typing import Any, Dict

import pytest

from replayninja.replication.errors import RecordingFormatError
from replayninja.schemas.object_repository import (
    OBJECT_REPOSITORY_FILENAME,
    ObjectRepository,
    TestObject,
    load_object_repository,
)
from replayninja.schemas.session import LocatorStrategy

REPOSITORY: Dict[str, Any] = {
    "schemaVersion": "1.0",
    "description": "Checkout pages",
    "objects": {
        "LoginPage.submit": {
            "name": "LoginPage.submit",
            "objectClass": "button",
            "locators": [
                {"strategy": "ID", "value": "login"},
                {"strategy": "css", "value": "#login"},
                {"strategy": "CSS", "value": "form button"},
            ],
            "properties": {"text": "Sign in"},
        },
        "LoginPage.email": {
            "locators": [{"strategy": "name", "value": "email"}],
        },
        "LoginPage.logo": {
            "locators": [{"strategy": "image", "value": "logo.png"}],
        },
    },
}


class TestObjectRepository:
    """Test suite for named test objects and their conversion to element descriptors."""

    @pytest.fixture
    def repository(self) -> ObjectRepository:
        return ObjectRepository.model_validate(REPOSITORY)

    # ? VALID CASE
    def test_first_locator_per_strategy_wins(self, repository: ObjectRepository) -> None:
        descriptor = repository.descriptor_for("LoginPage.submit")

        assert descriptor is not None
        assert descriptor.id == "login"
        assert descriptor.css == "#login"
        assert descriptor.tag_name == "button"
        assert descriptor.text == "Sign in"
        assert [strategy for strategy, _ in descriptor.populated_strategies()] == [
            LocatorStrategy.ID,
            LocatorStrategy.CSS,
        ]

    def test_mapping_key_names_unnamed_objects(self, repository: ObjectRepository) -> None:
        test_object = repository.find("LoginPage.email")

        assert test_object is not None
        assert test_object.name == "LoginPage.email"
        assert "LoginPage.email" in repository
        assert len(repository) == 3

    def test_load_from_directory(self, tmp_path: Path) -> None:
        (tmp_path / OBJECT_REPOSITORY_FILENAME).write_text(json.dumps(REPOSITORY), encoding="utf-8")

        repository = load_object_repository(tmp_path)

        assert repository.description == "Checkout pages"
        assert repository.descriptor_for("LoginPage.email") is not None

    # ! INVALID CASE
    def test_unknown_strategies_give_no_descriptor(self, repository: ObjectRepository) -> None:
        assert repository.descriptor_for("LoginPage.logo") is None
        assert repository.descriptor_for("LoginPage.missing") is None

    def test_blank_locator_values_are_ignored(self) -> None:
        test_object = TestObject(name="blank", locators=[{"strategy": "id", "value": "  "}])

        assert test_object.to_descriptor() is None

    @pytest.mark.parametrize(
        "content",
        [b"{not json", b'{"objects": []}', b"\xff\xfe\x00"],
        ids=["invalid-json", "objects-not-a-mapping", "not-utf8"],
    )
    def test_invalid_file(self, tmp_path: Path, content: bytes) -> None:
        path = tmp_path / "objects.json"
        path.write_bytes(content)

        with pytest.raises(RecordingFormatError):
            load_object_repository(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(RecordingFormatError, match="Cannot read"):
            load_object_repository(tmp_path / "missing.json")
