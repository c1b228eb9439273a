from __future__ import annotations

from datetime import datetime

import pytest

from imagegallery.core.errors import DateResolutionError
from imagegallery.core.models import GalleryDirectoryEntry
from imagegallery.core.services.identity_service import (
    GalleryIdentityBuilder,
    display_name,
    earliest_capture_time,
    resolve_identity,
)


@pytest.mark.parametrize(
    "directory_name, expected_id, expected_name, expected_date",
    [
        ("2023-05-01_summer-trip", "summer-trip", "Summer Trip", datetime(2023, 5, 1)),
        ("20230501summer_trip", "summer_trip", "Summer Trip", datetime(2023, 5, 1)),
        ("2023_05_01-a--b", "a--b", "A B", datetime(2023, 5, 1)),
        ("1999-12-31_PARTY_time", "PARTY_time", "Party Time", datetime(1999, 12, 31)),
    ],
)
def test_directory_name_with_date_prefix(directory_name, expected_id, expected_name, expected_date):
    identity = GalleryIdentityBuilder(directory_name).identity

    assert identity.id == expected_id
    assert identity.name == expected_name
    assert identity.date == expected_date


def test_directory_name_without_date_prefix_is_used_verbatim():
    identity = GalleryIdentityBuilder("holiday_pics-2").identity

    assert identity.id == "holiday_pics-2"
    assert identity.name == "Holiday Pics 2"
    assert identity.date is None


def test_display_name_collapses_separator_runs():
    assert display_name("new__york--city") == "New York City"


def test_earliest_capture_time_ignores_undated_entries():
    entries = [
        GalleryDirectoryEntry("a.jpg", datetime(2020, 1, 3)),
        GalleryDirectoryEntry("b.jpg", None),
        GalleryDirectoryEntry("c.jpg", datetime(2020, 1, 2)),
    ]

    assert earliest_capture_time(entries) == datetime(2020, 1, 2)
    assert earliest_capture_time([GalleryDirectoryEntry("b.jpg")]) is None


def test_capture_time_overwrites_directory_date():
    entries = [
        GalleryDirectoryEntry("a.jpg", datetime(2023, 6, 10, 8, 0)),
        GalleryDirectoryEntry("b.jpg", datetime(2023, 6, 9, 18, 0)),
    ]

    identity = resolve_identity("/g/2023-05-01_trip", "2023-05-01_trip", entries)

    assert identity.id == "trip"
    assert identity.date == datetime(2023, 6, 9, 18, 0)


def test_directory_date_kept_when_no_image_has_capture_time():
    entries = [GalleryDirectoryEntry("a.jpg"), GalleryDirectoryEntry("b.jpg")]

    identity = resolve_identity("/g/2023-05-01_trip", "2023-05-01_trip", entries)

    assert identity.date == datetime(2023, 5, 1)


def test_metadata_overrides_every_other_source():
    entries = [GalleryDirectoryEntry("a.jpg", datetime(2023, 6, 9))]
    metadata = {
        "datetime": datetime(2020, 2, 2, 10, 0),
        "id": "renamed",
        "name": "Renamed Gallery",
        "location": "Lisbon",
    }

    identity = resolve_identity("/g/2023-05-01_trip", "2023-05-01_trip", entries, metadata)

    assert identity.id == "renamed"
    assert identity.name == "Renamed Gallery"
    assert identity.date == datetime(2020, 2, 2, 10, 0)
    assert identity.extra == {"location": "Lisbon"}


def test_metadata_date_used_when_nothing_else_has_one():
    identity = resolve_identity(
        "/g/misc", "misc", [GalleryDirectoryEntry("a.jpg")], {"datetime": datetime(2021, 7, 4)}
    )

    assert identity.id == "misc"
    assert identity.date == datetime(2021, 7, 4)


def test_reserved_metadata_keys_are_ignored():
    identity = resolve_identity(
        "/g/2023-05-01_trip",
        "2023-05-01_trip",
        [],
        {"images": ["x.jpg"], "highlight_image": "x.jpg"},
    )

    assert identity.extra == {}


def test_missing_date_is_fatal_and_names_the_gallery():
    with pytest.raises(DateResolutionError) as excinfo:
        resolve_identity("/site/_galleries/misc", "misc", [GalleryDirectoryEntry("a.jpg")])

    message = str(excinfo.value)
    assert "/site/_galleries/misc" in message
    assert "EXIF" in message
    assert "gallery prefix" in message
    assert "_metadata" in message


def test_invalid_calendar_prefix_leaves_date_unset():
    identity = GalleryIdentityBuilder("2023-13-45_weird").identity

    assert identity.id == "weird"
    assert identity.date is None


def test_builder_steps_do_not_mutate_earlier_snapshots():
    builder = GalleryIdentityBuilder("2023-05-01_trip")
    before = builder.identity

    builder.apply_metadata({"name": "Other"})

    assert before.name == "Trip"
    assert builder.identity.name == "Other"
