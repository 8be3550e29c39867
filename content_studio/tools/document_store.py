"""Document store gateway.

Services talk to a `DocumentStore`; the backend is picked at startup. Documents
are plain JSON-safe dicts keyed by a caller-chosen id within a collection.
Writes are last-writer-wins.
"""

import copy
import logging
import uuid
from typing import Any, Optional

from content_studio.tools.mcp_bridge import call_record_tool, execute_mcp_tool

logger = logging.getLogger(__name__)


class DocumentStore:
    async def get(self, collection: str, doc_id: str) -> Optional[dict]:
        raise NotImplementedError

    async def set(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> dict:
        raise NotImplementedError

    async def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        await self.set(collection, doc_id, data)
        return doc_id

    async def delete(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError

    async def query(
        self,
        collection: str,
        where: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        raise NotImplementedError


def _matches(doc: dict, where: Optional[dict[str, Any]]) -> bool:
    return all(doc.get(field) == value for field, value in (where or {}).items())


def _order(docs: list[dict], order_by: Optional[str], descending: bool) -> list[dict]:
    if not order_by:
        return docs
    present = [d for d in docs if d.get(order_by) is not None]
    missing = [d for d in docs if d.get(order_by) is None]
    present.sort(key=lambda d: d[order_by], reverse=descending)
    return present + missing


class InMemoryDocumentStore(DocumentStore):
    """Process-local store used for development and tests."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict]] = {}

    async def get(self, collection: str, doc_id: str) -> Optional[dict]:
        doc = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def set(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> dict:
        docs = self._collections.setdefault(collection, {})
        if merge and doc_id in docs:
            stored = {**docs[doc_id], **copy.deepcopy(data)}
        else:
            stored = copy.deepcopy(data)
        stored["id"] = doc_id
        docs[doc_id] = stored
        return copy.deepcopy(stored)

    async def delete(self, collection: str, doc_id: str) -> bool:
        return self._collections.get(collection, {}).pop(doc_id, None) is not None

    async def query(self, collection, where=None, order_by=None, descending=False, limit=None):
        # Insertion order first, so results are stable when nothing is ordered.
        docs = [copy.deepcopy(d) for d in self._collections.get(collection, {}).values() if _matches(d, where)]
        docs = _order(docs, order_by, descending)
        return docs[:limit] if limit is not None else docs


def _pb_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_filter(where: Optional[dict[str, Any]]) -> str:
    """Render equality conditions as a PocketBase filter expression."""
    return " && ".join(f"{field} = {_pb_literal(value)}" for field, value in (where or {}).items())


class McpDocumentStore(DocumentStore):
    """PocketBase collections reached through the MCP server.

    PocketBase generates its own record ids, so our document id lives in a
    `doc_id` field and is looked up by filter.
    """

    def __init__(self, server_url: Optional[str] = None, page_size: int = 200):
        self.server_url = server_url
        self.page_size = page_size

    async def _list(self, collection: str, filter_expr: str) -> list[dict]:
        records: list[dict] = []
        page = 1
        while True:
            data = await call_record_tool(
                "list_records",
                {"collection": collection, "page": page, "per_page": self.page_size, "filter": filter_expr},
                server_url=self.server_url,
            )
            if isinstance(data, list):
                return records + data
            records.extend(data.get("items", []))
            if page >= data.get("totalPages", 1):
                return records
            page += 1

    def _to_document(self, record: dict) -> dict:
        doc = {k: v for k, v in record.items() if k not in ("collectionId", "collectionName", "created", "updated")}
        doc["_record_id"] = doc.pop("id", None)
        doc["id"] = doc.pop("doc_id", doc["_record_id"])
        return doc

    async def _find_record(self, collection: str, doc_id: str) -> Optional[dict]:
        records = await self._list(collection, build_filter({"doc_id": doc_id}))
        return records[0] if records else None

    async def get(self, collection: str, doc_id: str) -> Optional[dict]:
        record = await self._find_record(collection, doc_id)
        if record is None:
            return None
        doc = self._to_document(record)
        doc.pop("_record_id", None)
        return doc

    async def set(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> dict:
        record = await self._find_record(collection, doc_id)
        payload = {k: v for k, v in data.items() if k != "id"}
        payload["doc_id"] = doc_id
        if record is None:
            saved = await call_record_tool(
                "create_record", {"collection": collection, "data": payload}, server_url=self.server_url
            )
        else:
            if not merge:
                # Blank out fields the new document no longer carries.
                for key in self._to_document(record):
                    if key not in payload and key not in ("id", "_record_id"):
                        payload[key] = None
            saved = await call_record_tool(
                "update_record",
                {"collection": collection, "record_id": record["id"], "data": payload},
                server_url=self.server_url,
            )
        doc = self._to_document(saved or {**payload, "id": record["id"] if record else None})
        doc.pop("_record_id", None)
        return doc

    async def delete(self, collection: str, doc_id: str) -> bool:
        record = await self._find_record(collection, doc_id)
        if record is None:
            return False
        result = await execute_mcp_tool(
            "delete_record", {"collection": collection, "record_id": record["id"]}, server_url=self.server_url
        )
        text = result.content[0].text if result and getattr(result, "content", None) else ""
        if text.startswith("Error:"):
            logger.error(f"Failed to delete {collection}/{doc_id}: {text}")
            return False
        return True

    async def query(self, collection, where=None, order_by=None, descending=False, limit=None):
        records = await self._list(collection, build_filter(where))
        docs = []
        for record in records:
            doc = self._to_document(record)
            doc.pop("_record_id", None)
            docs.append(doc)
        docs = _order(docs, order_by, descending)
        return docs[:limit] if limit is not None else docs
