"""
=====================================================
AI Receptionist - Business Profile
=====================================================
Static facts about the represented business, loaded once from YAML
and used to fill canned answers and the AI system instruction.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from loguru import logger


class ProfileLoadError(Exception):
    """Raised when the business profile file is missing or malformed"""


@dataclass(frozen=True)
class BusinessProfile:
    """Immutable business facts"""
    name: str
    address: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    hours: str = ""
    meals: str = ""
    fees: Dict[str, str] = field(default_factory=dict)
    programs: List[str] = field(default_factory=list)
    tour_link: str = ""
    owner_number: str = ""
    owner_email: str = ""
    about: str = ""
    safety: str = ""

    def fees_text(self, separator: str = ", ") -> str:
        """Fees as 'Program: price' pairs"""
        return separator.join(f"{program}: {price}" for program, price in self.fees.items())

    def programs_text(self) -> str:
        return ", ".join(self.programs)

    @classmethod
    def from_dict(cls, data: dict) -> "BusinessProfile":
        """
        Build a profile from a parsed YAML/JSON mapping

        Args:
            data: Mapping with profile fields (unknown keys are ignored)

        Returns:
            BusinessProfile
        """
        if not isinstance(data, dict) or not data.get("name"):
            raise ProfileLoadError("Business profile must be a mapping with a 'name'")

        fees = data.get("fees") or {}
        if not isinstance(fees, dict):
            raise ProfileLoadError("'fees' must map program names to prices")

        programs = data.get("programs") or []
        if isinstance(programs, str):
            programs = [p.strip() for p in programs.split(",") if p.strip()]

        return cls(
            name=str(data["name"]),
            address=str(data.get("address") or ""),
            phone=str(data.get("phone") or ""),
            email=str(data.get("email") or ""),
            website=str(data.get("website") or ""),
            hours=str(data.get("hours") or ""),
            meals=str(data.get("meals") or ""),
            fees={str(k): str(v) for k, v in fees.items()},
            programs=[str(p) for p in programs],
            tour_link=str(data.get("tour_link") or ""),
            owner_number=str(data.get("owner_number") or ""),
            owner_email=str(data.get("owner_email") or ""),
            about=str(data.get("about") or ""),
            safety=str(data.get("safety") or ""),
        )


def load_business_profile(profile_path: Optional[str] = None) -> BusinessProfile:
    """
    Load the business profile from a YAML file

    Args:
        profile_path: Path to the profile YAML (defaults to clients/business_profile.yaml)

    Returns:
        BusinessProfile
    """
    if profile_path is None:
        # Default path relative to this file
        default_path = Path(__file__).parent.parent.parent / "clients" / "business_profile.yaml"
        profile_path = str(default_path)

    if not os.path.exists(profile_path):
        raise ProfileLoadError(f"Business profile not found: {profile_path}")

    try:
        with open(profile_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ProfileLoadError(f"Invalid YAML in {profile_path}: {e}") from e

    # A list of businesses is accepted; the first entry is served
    if isinstance(data, dict) and "businesses" in data:
        data = (data.get("businesses") or [None])[0]

    profile = BusinessProfile.from_dict(data)
    logger.info(f"Loaded business profile '{profile.name}' from {profile_path}")
    return profile


# Global instance
_profile: Optional[BusinessProfile] = None


def get_business_profile() -> BusinessProfile:
    """Get global business profile (loaded on first use)"""
    global _profile
    if _profile is None:
        from config.settings import get_settings
        _profile = load_business_profile(get_settings().business_profile_path)
    return _profile
