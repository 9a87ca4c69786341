from __future__ import annotations

from abc import ABC, abstractmethod

from scholarscout.models import Paper


class PaperSource(ABC):
    name: str

    @abstractmethod
    def search(self, query: str, *, api_key: str | None = None) -> list[Paper]:
        raise NotImplementedError
