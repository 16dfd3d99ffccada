"""In-process artifact store."""

from __future__ import annotations

import copy

from ..types import Part
from .base_artifact_service import BaseArtifactService


class InMemoryArtifactService(BaseArtifactService):
    def __init__(self) -> None:
        self.artifacts: dict[str, list[Part]] = {}

    @staticmethod
    def _file_has_user_namespace(filename: str) -> bool:
        return filename.startswith("user:")

    def _path(self, app_name: str, user_id: str, session_id: str, filename: str) -> str:
        if self._file_has_user_namespace(filename):
            return f"{app_name}/{user_id}/user/{filename}"
        return f"{app_name}/{user_id}/{session_id}/{filename}"

    async def save_artifact(
        self, *, app_name: str, user_id: str, session_id: str, filename: str, artifact: Part
    ) -> int:
        versions = self.artifacts.setdefault(self._path(app_name, user_id, session_id, filename), [])
        versions.append(copy.deepcopy(artifact))
        return len(versions) - 1

    async def load_artifact(
        self,
        *,
        app_name: str,
        user_id: str,
        session_id: str,
        filename: str,
        version: int | None = None,
    ) -> Part | None:
        versions = self.artifacts.get(self._path(app_name, user_id, session_id, filename))
        if not versions:
            return None
        if version is None:
            version = -1
        try:
            return copy.deepcopy(versions[version])
        except IndexError:
            return None

    async def list_artifact_keys(self, *, app_name: str, user_id: str, session_id: str) -> list[str]:
        session_prefix = f"{app_name}/{user_id}/{session_id}/"
        user_prefix = f"{app_name}/{user_id}/user/"
        keys = []
        for path in self.artifacts:
            if path.startswith(session_prefix):
                keys.append(path[len(session_prefix):])
            elif path.startswith(user_prefix):
                keys.append(path[len(user_prefix):])
        return sorted(keys)

    async def delete_artifact(
        self, *, app_name: str, user_id: str, session_id: str, filename: str
    ) -> None:
        self.artifacts.pop(self._path(app_name, user_id, session_id, filename), None)

    async def list_versions(
        self, *, app_name: str, user_id: str, session_id: str, filename: str
    ) -> list[int]:
        return list(range(len(self.artifacts.get(self._path(app_name, user_id, session_id, filename), []))))
