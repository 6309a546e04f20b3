"""Staff authentication for the admin API.

Each staff member is issued an API key. A key maps to a staff profile; an
unknown key yields no profile. The resource repositories assume they are
only reached by authenticated callers and do no token handling themselves.
"""

from pydantic import BaseModel


class StaffProfile(BaseModel):
    """Authenticated staff member."""

    name: str
    is_authenticated: bool = True


class StaffAuthenticator:
    """Resolves API keys to staff profiles."""

    def __init__(self, api_keys: dict[str, str]) -> None:
        """Initialize with the issued keys.

        Args:
            api_keys: API key -> staff member name

        Raises:
            ValueError: If no API keys are provided
        """
        if not api_keys:
            raise ValueError("At least one staff API key must be provided")

        self.api_keys = dict(api_keys)

    @classmethod
    def from_entries(cls, entries: list[str]) -> "StaffAuthenticator":
        """Build from ``name:key`` or bare ``key`` entries.

        Bare keys are attributed to a generic "staff" profile.
        """
        api_keys: dict[str, str] = {}
        for entry in entries:
            name, separator, key = entry.partition(":")
            if separator:
                api_keys[key.strip()] = name.strip() or "staff"
            else:
                api_keys[name.strip()] = "staff"
        return cls(api_keys)

    def authenticate(self, api_key: str) -> StaffProfile | None:
        """Return the staff profile for ``api_key``, or None if the key is unknown."""
        name = self.api_keys.get(api_key)
        if name is None:
            return None
        return StaffProfile(name=name)
