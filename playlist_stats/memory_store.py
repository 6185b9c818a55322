"""
In-process track store.

Implements the part of the MongoDB query and aggregation language that
Playlist Stats emits, so the ingestion and query code run unchanged against
it (local development, ``STORE_BACKEND=memory``, tests):

  filters      equality, $eq, $ne, $gt, $gte, $regex/$options
  stages       $project, $unwind, $match, $group ($sum), $sort, $limit
  expressions  field paths, literals, $split, $arrayElemAt, $trim

Missing and null values sort lowest, as in MongoDB. Anything else raises
StoreUnavailable.
"""

import copy
import re
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from .errors import StoreUnavailable
from .store import Document, SortSpec, StoreProvider, StoreSession, TrackCollection


def _unsupported(operation: str, what: str) -> StoreUnavailable:
    return StoreUnavailable(operation, f"unsupported operator {what}")


def _get_path(doc: Document, path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


# ---------------------------------------------------------------------------
# Expressions and filters
# ---------------------------------------------------------------------------

def _evaluate(expr: Any, doc: Document) -> Any:
    if isinstance(expr, str) and expr.startswith("$"):
        return _get_path(doc, expr[1:])

    if isinstance(expr, dict) and len(expr) == 1 and next(iter(expr)).startswith("$"):
        op, args = next(iter(expr.items()))
        if op == "$split":
            value, delimiter = (_evaluate(a, doc) for a in args)
            return None if value is None else value.split(delimiter)
        if op == "$arrayElemAt":
            array, index = (_evaluate(a, doc) for a in args)
            if array is None:
                return None
            try:
                return array[index]
            except IndexError:
                return None
        if op == "$trim":
            value = _evaluate(args["input"], doc)
            chars = _evaluate(args.get("chars"), doc)
            return None if value is None else value.strip(chars)
        raise _unsupported("aggregate", op)

    if isinstance(expr, dict):
        return {k: _evaluate(v, doc) for k, v in expr.items()}
    return expr


def _compare(value: Any, op: str, arg: Any, options: str) -> bool:
    if op == "$eq":
        return value == arg
    if op == "$ne":
        return value != arg
    if op in ("$gt", "$gte"):
        if value is None:
            return False
        return value > arg if op == "$gt" else value >= arg
    if op == "$regex":
        if not isinstance(value, str):
            return False
        flags = re.IGNORECASE if "i" in options else 0
        return re.search(arg, value, flags) is not None
    raise _unsupported("find", op)


def _matches(doc: Document, filter: Document) -> bool:
    for field, condition in filter.items():
        value = _get_path(doc, field)
        if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
            options = condition.get("$options", "")
            for op, arg in condition.items():
                if op == "$options":
                    continue
                if not _compare(value, op, arg, options):
                    return False
        elif value != condition:
            return False
    return True


def _sort_docs(docs: List[Document], sort: SortSpec) -> List[Document]:
    result = list(docs)
    # Stable sorts applied from the least significant key.
    for field, direction in reversed(list(sort)):
        result.sort(
            key=lambda d: (0, 0) if _get_path(d, field) is None else (1, _get_path(d, field)),
            reverse=direction < 0,
        )
    return result


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

def _project(docs: List[Document], spec: Document) -> List[Document]:
    excluded = {k for k, v in spec.items() if v in (0, False)}
    kept = {k: v for k, v in spec.items() if k not in excluded}
    out = []
    for doc in docs:
        if not kept:
            out.append({k: v for k, v in doc.items() if k not in excluded})
            continue
        projected = {} if "_id" in excluded else {"_id": doc.get("_id")}
        for field, expr in kept.items():
            projected[field] = _get_path(doc, field) if expr in (1, True) else _evaluate(expr, doc)
        out.append(projected)
    return out


def _unwind(docs: List[Document], spec: Any) -> List[Document]:
    path = spec["path"] if isinstance(spec, dict) else spec
    field = path[1:]
    out = []
    for doc in docs:
        value = doc.get(field)
        if value is None:
            continue
        if not isinstance(value, list):
            out.append(doc)
            continue
        for item in value:
            out.append({**doc, field: item})
    return out


def _group(docs: List[Document], spec: Document) -> List[Document]:
    groups: Dict[Any, Document] = {}
    for doc in docs:
        key = _evaluate(spec["_id"], doc)
        group = groups.setdefault(key, {"_id": key, **{f: 0 for f in spec if f != "_id"}})
        for field, accumulator in spec.items():
            if field == "_id":
                continue
            if set(accumulator) != {"$sum"}:
                raise _unsupported("aggregate", ", ".join(accumulator))
            value = _evaluate(accumulator["$sum"], doc)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                group[field] += value
    return list(groups.values())


def _run_pipeline(docs: List[Document], pipeline: List[Document]) -> List[Document]:
    for stage in pipeline:
        (name, spec), = stage.items()
        if name == "$project":
            docs = _project(docs, spec)
        elif name == "$unwind":
            docs = _unwind(docs, spec)
        elif name == "$match":
            docs = [d for d in docs if _matches(d, spec)]
        elif name == "$group":
            docs = _group(docs, spec)
        elif name == "$sort":
            docs = _sort_docs(docs, list(spec.items()))
        elif name == "$limit":
            docs = docs[:spec]
        else:
            raise _unsupported("aggregate", name)
    return docs


# ---------------------------------------------------------------------------
# Store classes
# ---------------------------------------------------------------------------

class MemoryTrackCollection(TrackCollection):
    def __init__(self, collections: Dict[str, List[Document]], name: str) -> None:
        self._collections = collections
        self.name = name

    @property
    def _docs(self) -> List[Document]:
        return self._collections.setdefault(self.name, [])

    async def delete_all(self) -> int:
        removed = len(self._docs)
        self._docs.clear()
        return removed

    async def drop(self) -> None:
        self._collections.pop(self.name, None)

    async def insert_one(self, doc: Document) -> str:
        stored = copy.deepcopy(doc)
        stored["_id"] = uuid.uuid4().hex
        self._docs.append(stored)
        return stored["_id"]

    async def insert_many(self, docs: List[Document]) -> List[str]:
        return [await self.insert_one(d) for d in docs]

    async def find(self, filter: Document, sort: Optional[SortSpec] = None) -> List[Document]:
        found = [d for d in self._docs if _matches(d, filter)]
        if sort:
            found = _sort_docs(found, sort)
        return [{k: copy.deepcopy(v) for k, v in d.items() if k != "_id"} for d in found]

    async def count(self) -> int:
        return len(self._docs)

    async def aggregate(self, pipeline: List[Document]) -> List[Document]:
        return _run_pipeline(copy.deepcopy(self._docs), pipeline)


class MemoryStoreSession(StoreSession):
    def __init__(self, collections: Dict[str, List[Document]]) -> None:
        self._collections = collections

    def collection(self, name: str) -> MemoryTrackCollection:
        return MemoryTrackCollection(self._collections, name)

    async def swap(self, staging: str, target: str) -> None:
        self._collections[target] = self._collections.pop(staging, [])


class MemoryStoreProvider(StoreProvider):
    """Holds the collections; each session is a view onto them."""

    def __init__(self) -> None:
        self.collections: Dict[str, List[Document]] = {}

    @asynccontextmanager
    async def session(self) -> AsyncIterator[MemoryStoreSession]:
        yield MemoryStoreSession(self.collections)
