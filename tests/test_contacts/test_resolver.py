"""Tests for the contacts name resolver."""

import json
from unittest.mock import MagicMock, patch
import subprocess

import pytest

from passage.contacts.reader import ContactCard
from passage.contacts.resolver import (
    ContactsResolver,
    fetch_contacts_via_applescript,
    parse_applescript_output,
)
from passage.exceptions import ContactResolutionError


@pytest.fixture
def resolver(tmp_path):
    return ContactsResolver(cache_path=tmp_path / "contacts-cache.json")


CARDS = [
    ContactCard(name="Alice Smith", phones=["+1 (555) 123-4567"], emails=["Alice@Example.com"]),
    ContactCard(name="Bob Jones", phones=["555-9876", "44 20 7946 0958"]),
    ContactCard(name="Short", phones=["911"]),
]


def test_resolve_before_cache_built(resolver):
    assert resolver.is_ready is False
    assert resolver.resolve("+15551234567") is None
    assert resolver.resolve("") is None


def test_build_cache_and_resolve(resolver):
    resolver.build_cache(CARDS)
    assert resolver.is_ready is True
    assert resolver.resolve("+15551234567") == "Alice Smith"
    assert resolver.resolve("5551234567") == "Alice Smith"
    assert resolver.resolve("alice@example.com") == "Alice Smith"
    assert resolver.resolve("ALICE@EXAMPLE.COM") == "Alice Smith"
    assert resolver.resolve("5559876") == "Bob Jones"
    assert resolver.resolve("+442079460958") == "Bob Jones"
    assert resolver.resolve("911") is None
    assert resolver.resolve("nobody@example.com") is None


def test_build_cache_writes_cache_file(resolver):
    resolver.build_cache(CARDS)
    data = json.loads(resolver.cache_path.read_text())
    assert ["5551234567", "Alice Smith"] in data["phones"]
    assert ["alice@example.com", "Alice Smith"] in data["emails"]
    assert data["timestamp"] > 0


def test_load_from_cache_round_trip(resolver, tmp_path):
    resolver.build_cache(CARDS)

    fresh = ContactsResolver(cache_path=tmp_path / "contacts-cache.json")
    assert fresh.load_from_cache() is True
    assert fresh.resolve("+1 555 123 4567") == "Alice Smith"


def test_load_from_missing_cache(resolver):
    assert resolver.load_from_cache() is False
    assert resolver.is_ready is False


def test_load_from_corrupt_cache(resolver):
    resolver.cache_path.write_text("{not json")
    assert resolver.load_from_cache() is False
    assert resolver.is_ready is False


def test_save_to_unwritable_location_does_not_raise(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    resolver = ContactsResolver(cache_path=blocker / "cache.json")
    resolver.build_cache(CARDS)
    assert resolver.resolve("alice@example.com") == "Alice Smith"


def test_parse_applescript_output():
    output = (
        "Alice Smith|phone|+1 (555) 123-4567\n"
        "Alice Smith|email|alice@example.com\n"
        "malformed line\n"
        "|phone|5550000000\n"
        "Bob|fax|5551112222\n"
    )
    cards = parse_applescript_output(output)
    assert [c.name for c in cards] == ["Alice Smith", "Bob"]
    assert cards[0].phones == ["+1 (555) 123-4567"]
    assert cards[0].emails == ["alice@example.com"]
    assert cards[1].phones == []


@patch("passage.contacts.resolver.subprocess.run")
def test_build_cache_from_applescript(mock_run, resolver):
    mock_run.return_value = MagicMock(returncode=0, stdout="Carol|phone|555-987-6543\n", stderr="")
    resolver.build_cache()
    assert resolver.resolve("+15559876543") == "Carol"
    mock_run.assert_called_once()


@patch("passage.contacts.resolver.subprocess.run")
def test_applescript_failure(mock_run):
    mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="execution error")
    with pytest.raises(ContactResolutionError, match="execution error"):
        fetch_contacts_via_applescript()


@patch(
    "passage.contacts.resolver.subprocess.run",
    side_effect=subprocess.TimeoutExpired(cmd="osascript", timeout=1),
)
def test_applescript_timeout(mock_run):
    with pytest.raises(ContactResolutionError, match="timed out"):
        fetch_contacts_via_applescript(timeout=1)


@patch("passage.contacts.resolver.subprocess.run", side_effect=FileNotFoundError)
def test_applescript_missing_osascript(mock_run):
    with pytest.raises(ContactResolutionError, match="osascript"):
        fetch_contacts_via_applescript()
