import pytest

from github_repo_cloner.models import RepositoryIdentifier
from github_repo_cloner.repository import (
    extract_repository_identifiers, collect_existing_folder_names,
    filter_excluding_local, filter_by_name
)

from conftest import ids


def test_identifier_parse_and_folder_name():
    """Scenario: owner/name parsing derives the folder name from the name part"""
    identifier = RepositoryIdentifier.parse("UnityEssentials/UnityTimer")
    assert identifier.owner == "UnityEssentials"
    assert identifier.name == "UnityTimer"
    assert identifier.folder_name == "UnityTimer"
    assert str(identifier) == "UnityEssentials/UnityTimer"


@pytest.mark.parametrize("value", ["noslash", "a/b/c", "/name", "owner/"])
def test_identifier_parse_rejects_malformed(value):
    with pytest.raises(ValueError):
        RepositoryIdentifier.parse(value)


def test_clone_url_embeds_token():
    identifier = RepositoryIdentifier("me", "Repo")
    assert identifier.clone_url("tok") == "https://tok@github.com/me/Repo.git"
    assert identifier.clone_url() == "https://github.com/me/Repo.git"


def test_extract_preserves_order_and_duplicates():
    """Scenario: N well-formed full_name entries yield N identifiers in document order"""
    payload = [
        {"id": 1, "full_name": "a/Zeta"},
        {"id": 2, "full_name": "a/Alpha"},
        {"id": 3, "full_name": "a/Zeta"},
    ]
    assert extract_repository_identifiers(payload) == ids("a/Zeta", "a/Alpha", "a/Zeta")


def test_extract_tolerates_missing_fields_and_bad_shapes():
    """Scenario: missing or malformed data means fewer entries, never an error"""
    payload = [
        {"id": 1},
        "not-an-object",
        {"full_name": None},
        {"full_name": "no-slash"},
        {"full_name": "b/Kept"},
    ]
    assert extract_repository_identifiers(payload) == ids("b/Kept")
    assert extract_repository_identifiers({"message": "Bad credentials"}) == []
    assert extract_repository_identifiers(None) == []


def test_filter_by_name_empty_is_identity():
    entries = ids("a/X", "b/Y")
    assert filter_by_name(entries, "") == entries
    assert filter_by_name(entries, None) == entries


def test_filter_by_name_is_case_insensitive():
    assert filter_by_name(ids("Foo/Bar"), "bar") == ids("Foo/Bar")
    assert filter_by_name(ids("Foo/Bar", "Foo/Baz"), "FOO/BA") == ids("Foo/Bar", "Foo/Baz")
    assert filter_by_name(ids("Foo/Bar"), "qux") == []


def test_filter_by_name_matches_owner_part():
    entries = ids("alice/Tool", "bob/Tool")
    assert filter_by_name(entries, "ALICE") == ids("alice/Tool")


def test_filter_excluding_local_removes_existing_folders():
    """Scenario: entries whose folder already exists are dropped"""
    assert filter_excluding_local(ids("a/X", "a/Y"), {"Y"}) == ids("a/X")
    assert filter_excluding_local(ids("a/X", "a/Y"), set()) == ids("a/X", "a/Y")


def test_collect_existing_folder_names_is_recursive(tmp_path):
    (tmp_path / "Plugins" / "Nested" / "Deep").mkdir(parents=True)
    (tmp_path / "Scripts").mkdir()
    (tmp_path / "file.txt").write_text("x")

    names = collect_existing_folder_names(tmp_path)

    assert names == {"Plugins", "Nested", "Deep", "Scripts"}


def test_collect_existing_folder_names_missing_root(tmp_path):
    assert collect_existing_folder_names(tmp_path / "missing") == set()


def test_nested_folder_hides_repository(tmp_path):
    """Scenario: a same-named folder anywhere under the root excludes the repository"""
    (tmp_path / "Vendor" / "Y").mkdir(parents=True)
    existing = collect_existing_folder_names(tmp_path)
    assert filter_excluding_local(ids("a/X", "other/Y"), existing) == ids("a/X")
