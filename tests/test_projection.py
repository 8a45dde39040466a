"""Tests for versioned field projection."""

from dataclasses import dataclass, field
from operator import attrgetter
from typing import Optional

import pytest

from bookshelf import FieldResolutionError, FieldSpec, UnsupportedVersionError, project


@dataclass
class Writer:
    id: int
    name: str
    works: list = field(default_factory=list)


@dataclass
class Work:
    id: int
    title: str
    note: Optional[str] = None
    writer: Optional[Writer] = None


WORK_FIELDS = [
    FieldSpec("id", attrgetter("id")),
    FieldSpec("title", attrgetter("title")),
    FieldSpec("note", attrgetter("note"), introduced_at="2.0"),
]


class TestVersionGating:
    """Fields appear from their introduction version on."""

    def test_versioned_field_hidden_before(self) -> None:
        result = project(Work(1, "Dune", note="classic"), WORK_FIELDS, "1.0")
        assert result == {"id": 1, "title": "Dune"}

    def test_versioned_field_shown_at(self) -> None:
        result = project(Work(1, "Dune", note="classic"), WORK_FIELDS, "2.0")
        assert result == {"id": 1, "title": "Dune", "note": "classic"}

    def test_versioned_field_shown_after(self) -> None:
        result = project(Work(1, "Dune"), WORK_FIELDS, "10.1")
        assert "note" in result

    def test_declaration_order_preserved(self) -> None:
        fields = [
            FieldSpec("title", attrgetter("title")),
            FieldSpec("note", attrgetter("note"), introduced_at="1.5"),
            FieldSpec("id", attrgetter("id")),
        ]
        result = project(Work(1, "Dune", note="n"), fields, "2.0")
        assert list(result) == ["title", "note", "id"]

    def test_invalid_version_rejected(self) -> None:
        with pytest.raises(UnsupportedVersionError):
            project(Work(1, "Dune"), WORK_FIELDS, "latest")


class TestGroups:
    """Serialization groups select fields."""

    def test_group_filters_fields(self) -> None:
        fields = [
            FieldSpec("id", attrgetter("id"), groups=frozenset({"a", "b"})),
            FieldSpec("title", attrgetter("title"), groups=frozenset({"b"})),
            FieldSpec("note", attrgetter("note")),
        ]
        work = Work(1, "Dune", note="n")
        assert project(work, fields, "1.0", group="a") == {"id": 1, "note": "n"}
        assert project(work, fields, "1.0", group="b") == {
            "id": 1,
            "title": "Dune",
            "note": "n",
        }

    def test_no_group_shows_everything(self) -> None:
        fields = [FieldSpec("title", attrgetter("title"), groups=frozenset({"b"}))]
        assert project(Work(1, "Dune"), fields, "1.0") == {"title": "Dune"}


class TestNested:
    """Related entities are projected with the same version and group."""

    def test_nested_entity_and_collection(self) -> None:
        writer_fields = [
            FieldSpec("id", attrgetter("id")),
            FieldSpec("name", attrgetter("name")),
            FieldSpec(
                "works",
                attrgetter("works"),
                groups=frozenset({"writers"}),
                nested=lambda: work_fields,
            ),
        ]
        work_fields = [
            *WORK_FIELDS,
            FieldSpec(
                "writer",
                attrgetter("writer"),
                groups=frozenset({"works"}),
                nested=lambda: writer_fields,
            ),
        ]
        writer = Writer(7, "Herbert")
        work = Work(1, "Dune", note="n", writer=writer)
        writer.works.append(work)

        assert project(work, work_fields, "2.0", group="works") == {
            "id": 1,
            "title": "Dune",
            "note": "n",
            "writer": {"id": 7, "name": "Herbert"},
        }
        assert project(writer, writer_fields, "1.0", group="writers") == {
            "id": 7,
            "name": "Herbert",
            "works": [{"id": 1, "title": "Dune"}],
        }

    def test_missing_relation_is_none(self) -> None:
        fields = [
            FieldSpec("writer", attrgetter("writer"), nested=lambda: WORK_FIELDS),
        ]
        assert project(Work(1, "Dune"), fields, "1.0") == {"writer": None}


class TestFieldResolution:
    """A failing accessor aborts the whole projection."""

    def test_failing_accessor(self) -> None:
        fields = [
            FieldSpec("id", attrgetter("id")),
            FieldSpec("missing", attrgetter("does_not_exist")),
        ]
        with pytest.raises(FieldResolutionError) as exc_info:
            project(Work(1, "Dune"), fields, "1.0")

        assert exc_info.value.field == "missing"
        assert isinstance(exc_info.value.__cause__, AttributeError)

    def test_hidden_field_is_not_resolved(self) -> None:
        fields = [
            FieldSpec("id", attrgetter("id")),
            FieldSpec("future", attrgetter("does_not_exist"), introduced_at="3.0"),
        ]
        assert project(Work(1, "Dune"), fields, "2.0") == {"id": 1}

    def test_nested_failure_propagates(self) -> None:
        fields = [
            FieldSpec(
                "writer",
                attrgetter("writer"),
                nested=lambda: [FieldSpec("age", attrgetter("age"))],
            ),
        ]
        with pytest.raises(FieldResolutionError) as exc_info:
            project(Work(1, "Dune", writer=Writer(7, "Herbert")), fields, "1.0")
        assert exc_info.value.field == "age"
