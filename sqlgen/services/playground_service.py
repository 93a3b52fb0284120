import logging
from typing import Any, Dict, List, Optional

from sqlgen.api.client import ApiClient
from sqlgen.api.envelope import unwrap
from sqlgen.playground.models import Playground

log = logging.getLogger(__name__)


class PlaygroundService:
    """CRUD по /playgrounds. Ответы бывают в нескольких обёртках - см. unwrap()."""

    def __init__(self, api: ApiClient):
        self.api = api

    def list_playgrounds(self) -> List[Playground]:
        response = self.api.get("/playgrounds")
        items = response if isinstance(response, list) else unwrap(response, "playgrounds")
        if not isinstance(items, list):
            log.warning("[playground] unexpected /playgrounds response: %r", response)
            return []
        return [Playground.from_dict(p) for p in items]

    def get_playground(self, playground_id: str) -> Optional[Playground]:
        data = unwrap(self.api.get(f"/playgrounds/{playground_id}"), "playground")
        return Playground.from_dict(data) if isinstance(data, dict) else None

    def create_playground(self, name: str, database_id: Optional[str] = None) -> Optional[Playground]:
        data = unwrap(self.api.post("/playgrounds", {"name": name, "databaseId": database_id}), "playground")
        if not isinstance(data, dict):
            return None
        playground = Playground.from_dict(data)
        if playground.database_id is None:
            playground.database_id = database_id
        return playground

    def update_playground(self, playground_id: str, updates: Dict[str, Any]) -> Optional[Playground]:
        data = unwrap(self.api.put(f"/playgrounds/{playground_id}", updates), "playground")
        return Playground.from_dict(data) if isinstance(data, dict) else None

    def save_playground(self, playground: Playground) -> None:
        """Интерфейс хранилища для PlaygroundSession."""
        self.update_playground(playground.id, playground.to_dict())

    def load_playground(self, playground_id: str) -> Optional[Playground]:
        return self.get_playground(playground_id)

    def delete_playground(self, playground_id: str) -> bool:
        response = self.api.delete(f"/playgrounds/{playground_id}")
        return bool(unwrap(response, "success", default=False))

    def add_connection(self, playground_id: str, connection_id: str) -> Optional[Playground]:
        response = self.api.post(f"/playgrounds/{playground_id}/connections", {"connectionId": connection_id})
        data = unwrap(response, "playground")
        return Playground.from_dict(data) if isinstance(data, dict) else None
