"""
PowerCfgProfileManager - Power plans via powercfg.

Output of `powercfg /list` looks like:

    Existing Power Schemes (* Active)
    -----------------------------------
    Power Scheme GUID: 381b4222-f694-41f0-9685-ff5bb260df2e  (Balanced) *
    Power Scheme GUID: 8c5e7fda-e8bf-4a96-9a85-a6e23a8c635c  (High performance)

Only the GUID/name/asterisk shape is parsed, so localized output works.
"""

import re
import subprocess
from typing import List

from ..protocol.errors import ProfileError, ProfileNotFoundError
from ..snapshot.models import ActiveProfile
from .base import Profile, ProfileManager

_SCHEME_RE = re.compile(
    r"([0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12})"
    r"\s+\(([^)]*)\)\s*(\*)?"
)


def parse_schemes(output: str) -> List[Profile]:
    """Parse `powercfg /list` or `/getactivescheme` output."""
    profiles = []
    for line in output.splitlines():
        match = _SCHEME_RE.search(line)
        if match:
            profiles.append(Profile(
                id=match.group(1).lower(),
                name=match.group(2).strip(),
                is_active=match.group(3) is not None,
            ))
    return profiles


class PowerCfgProfileManager(ProfileManager):
    """ProfileManager backed by the powercfg tool."""

    def __init__(self, timeout: int = 30):
        self.timeout = timeout

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["powercfg", *args],
                capture_output=True, text=True, timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ProfileError(f"powercfg {' '.join(args)} failed: {e}") from e

        if result.returncode != 0:
            message = (result.stderr or result.stdout).strip() or f"exit code {result.returncode}"
            raise ProfileError(f"powercfg {' '.join(args)} failed: {message}")
        return result.stdout

    def list_profiles(self) -> List[Profile]:
        return parse_schemes(self._run("/list"))

    def get_active(self) -> ActiveProfile:
        schemes = parse_schemes(self._run("/getactivescheme"))
        if not schemes:
            return ActiveProfile.unknown()
        return ActiveProfile(id=schemes[0].id, name=schemes[0].name)

    def activate(self, profile_id: str) -> None:
        known = {p.id for p in self.list_profiles()}
        if profile_id.lower() not in known:
            raise ProfileNotFoundError(f"Power profile {profile_id} does not exist")
        self._run("/setactive", profile_id)
