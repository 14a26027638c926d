"""Version counters for cached admin views."""

import hashlib
import logging
from typing import Dict

logger = logging.getLogger(__name__)


class ViewVersions:
    """
    Per-path version counters.

    Mutations bump the path of every view they change; readers send the
    resulting ETag so the admin UI knows when to refetch.
    """

    def __init__(self):
        self._versions: Dict[str, int] = {}

    def bump(self, path: str) -> int:
        version = self._versions.get(path, 0) + 1
        self._versions[path] = version
        logger.debug(f"View {path} now at version {version}")
        return version

    def version(self, path: str) -> int:
        return self._versions.get(path, 0)

    def etag(self, path: str) -> str:
        digest = hashlib.sha1(f"{path}:{self.version(path)}".encode()).hexdigest()[:16]
        return f'W/"{digest}"'
