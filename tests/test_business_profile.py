"""Tests for loading the business profile."""

import pytest

from services.knowledge.business_profile import BusinessProfile, ProfileLoadError, load_business_profile


def test_bundled_profile_loads():
    profile = load_business_profile()
    assert profile.name == "Little Wonders Childcare"
    assert profile.fees["Toddler"] == "$900/month"
    assert profile.owner_number.startswith("+")


def test_single_mapping(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text("name: Tiny Tots\nhours: 8 to 5\nprograms: Infant, Toddler\n", encoding="utf-8")
    profile = load_business_profile(str(path))
    assert profile.hours == "8 to 5"
    assert profile.programs == ["Infant", "Toddler"]
    assert profile.fees == {}


def test_missing_file(tmp_path):
    with pytest.raises(ProfileLoadError):
        load_business_profile(str(tmp_path / "nope.yaml"))


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("name: [unclosed\n", encoding="utf-8")
    with pytest.raises(ProfileLoadError):
        load_business_profile(str(path))


def test_name_required(tmp_path):
    path = tmp_path / "anon.yaml"
    path.write_text("hours: 9 to 5\n", encoding="utf-8")
    with pytest.raises(ProfileLoadError):
        load_business_profile(str(path))


def test_fees_text_separator():
    profile = BusinessProfile(name="X", fees={"Toddler": "$900", "Preschool": "$850"})
    assert profile.fees_text() == "Toddler: $900, Preschool: $850"
    assert profile.fees_text(separator="; ") == "Toddler: $900; Preschool: $850"
