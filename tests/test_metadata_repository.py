from __future__ import annotations

from datetime import datetime

import pytest

from imagegallery.core.errors import MetadataParseError
from imagegallery.infrastructure.metadata_repository import MetadataRepository


def test_no_metadata_file_returns_none(tmp_path):
    assert MetadataRepository().load(tmp_path) is None


def test_toml_wins_over_json(tmp_path):
    (tmp_path / "_metadata.toml").write_text('name = "From TOML"\n', encoding="utf-8")
    (tmp_path / "_metadata.json").write_text('{"name": "From JSON"}', encoding="utf-8")

    assert MetadataRepository().load(tmp_path) == {"name": "From TOML"}


def test_json_metadata_with_datetime_string(tmp_path):
    (tmp_path / "_metadata.json").write_text(
        '{"datetime": "2022-08-15 14:30", "tags": ["beach", "sea"]}', encoding="utf-8"
    )

    metadata = MetadataRepository().load(tmp_path)

    assert metadata == {"datetime": datetime(2022, 8, 15, 14, 30), "tags": ["beach", "sea"]}


@pytest.mark.parametrize(
    "toml_value, expected",
    [
        ("2021-07-04", datetime(2021, 7, 4)),
        ("2021-07-04T08:15:00", datetime(2021, 7, 4, 8, 15)),
        ("2021-07-04T08:15:00+02:00", datetime(2021, 7, 4, 8, 15)),
        ('"2021-07-04"', datetime(2021, 7, 4)),
    ],
)
def test_toml_datetime_values(tmp_path, toml_value, expected):
    (tmp_path / "_metadata.toml").write_text(f"datetime = {toml_value}\n", encoding="utf-8")

    assert MetadataRepository().load(tmp_path)["datetime"] == expected


def test_malformed_json_is_fatal_and_names_the_file(tmp_path):
    path = tmp_path / "_metadata.json"
    path.write_text('{"name": ', encoding="utf-8")

    with pytest.raises(MetadataParseError) as excinfo:
        MetadataRepository().load(tmp_path)

    assert str(path) in str(excinfo.value)


def test_malformed_toml_is_fatal(tmp_path):
    (tmp_path / "_metadata.toml").write_text("name = \n", encoding="utf-8")

    with pytest.raises(MetadataParseError):
        MetadataRepository().load(tmp_path)


def test_unparsable_datetime_is_fatal(tmp_path):
    (tmp_path / "_metadata.json").write_text('{"datetime": "last summer"}', encoding="utf-8")

    with pytest.raises(MetadataParseError) as excinfo:
        MetadataRepository().load(tmp_path)

    assert "_metadata.json" in str(excinfo.value)


def test_non_mapping_json_is_fatal(tmp_path):
    (tmp_path / "_metadata.json").write_text('["a", "b"]', encoding="utf-8")

    with pytest.raises(MetadataParseError):
        MetadataRepository().load(tmp_path)
