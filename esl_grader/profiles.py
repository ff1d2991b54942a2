"""Read-only class profile store backed by a JSON file."""

import json
from pathlib import Path
from typing import Dict, List, Union

from .errors import ProfileNotFoundError
from .models import ClassProfile
from .utils.logging import get_logger

logger = get_logger(__name__)


class ProfileStore:
    """Class profiles keyed by id.

    The file holds ``{"profiles": [...]}``; each profile has ``id``, ``name``,
    ``cefrLevel``, ``vocabulary``, ``grammar`` and an optional ``temperature``.
    """

    def __init__(self, profiles: List[ClassProfile]):
        self._profiles: Dict[str, ClassProfile] = {p.id: p for p in profiles}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ProfileStore":
        """Load profiles from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file is not valid JSON.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Class profiles file not found: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in class profiles file: {e}")

        profiles = [ClassProfile.from_dict(p) for p in data.get("profiles", [])]
        logger.debug(f"Loaded {len(profiles)} class profiles from {path}")
        return cls(profiles)

    def find(self, profile_id) -> ClassProfile:
        profile = self._profiles.get(str(profile_id))
        if profile is None:
            raise ProfileNotFoundError(str(profile_id))
        return profile

    def profiles(self) -> List[ClassProfile]:
        return list(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, profile_id) -> bool:
        return str(profile_id) in self._profiles
