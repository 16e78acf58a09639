"""
In-memory stand-ins for the motor collections used by the services.

Only the query and update operators the services issue are supported.
"""

import copy
import json
from types import SimpleNamespace

from bson import ObjectId
from pymongo.errors import DuplicateKeyError


def _get_path(document, path):
    value = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _set_path(document, path, value):
    parts = path.split(".")
    target = document
    for part in parts[:-1]:
        target = target.setdefault(part, {})
    target[parts[-1]] = value


def _unset_path(document, path):
    parts = path.split(".")
    target = document
    for part in parts[:-1]:
        target = target.get(part)
        if not isinstance(target, dict):
            return
    target.pop(parts[-1], None)


def _matches_condition(value, condition):
    if isinstance(condition, dict) and any(key.startswith("$") for key in condition):
        for op, expected in condition.items():
            if op == "$gt" and not (value is not None and value > expected):
                return False
            if op == "$gte" and not (value is not None and value >= expected):
                return False
            if op == "$lt" and not (value is not None and value < expected):
                return False
            if op == "$lte" and not (value is not None and value <= expected):
                return False
            if op == "$ne" and value == expected:
                return False
            if op == "$in" and value not in expected:
                return False
            if op == "$exists" and (value is not None) != bool(expected):
                return False
        return True
    return value == condition


def matches(document, query):
    return all(_matches_condition(_get_path(document, key), condition) for key, condition in query.items())


class FakeCursor:
    def __init__(self, documents):
        self._documents = documents

    def sort(self, key, direction=1):
        present = [d for d in self._documents if _get_path(d, key) is not None]
        missing = [d for d in self._documents if _get_path(d, key) is None]
        present.sort(key=lambda d: _get_path(d, key), reverse=direction < 0)
        self._documents = present + missing
        return self

    async def to_list(self, length=None):
        documents = self._documents if length is None else self._documents[:length]
        return [copy.deepcopy(d) for d in documents]


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.documents = []
        self.indexes = []
        self._unique = []

    async def create_index(self, keys, unique=False, **kwargs):
        if isinstance(keys, str):
            keys = [(keys, 1)]
        fields = tuple(field for field, _ in keys)
        self.indexes.append({"keys": fields, "unique": unique, **kwargs})
        if unique and not kwargs.get("sparse"):
            self._unique.append(fields)
        return kwargs.get("name") or "_".join(fields)

    def _check_unique(self, candidate, ignore=None):
        for fields in self._unique:
            key = tuple(_get_path(candidate, field) for field in fields)
            for existing in self.documents:
                if existing is ignore:
                    continue
                if tuple(_get_path(existing, field) for field in fields) == key:
                    raise DuplicateKeyError(f"E11000 duplicate key on {self.name} {fields}")

    def _find(self, query):
        return [d for d in self.documents if matches(d, query)]

    async def find_one(self, query=None):
        found = self._find(query or {})
        return copy.deepcopy(found[0]) if found else None

    def find(self, query=None):
        return FakeCursor(self._find(query or {}))

    async def count_documents(self, query):
        return len(self._find(query))

    async def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        stored = copy.deepcopy(document)
        self._check_unique(stored)
        self.documents.append(stored)
        return SimpleNamespace(inserted_id=document["_id"])

    async def replace_one(self, query, replacement, upsert=False):
        found = self._find(query)
        if found:
            existing = found[0]
            new = copy.deepcopy(replacement)
            new["_id"] = existing["_id"]
            self._check_unique(new, ignore=existing)
            self.documents[self.documents.index(existing)] = new
            return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if upsert:
            new = copy.deepcopy(replacement)
            new["_id"] = ObjectId()
            self._check_unique(new)
            self.documents.append(new)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=new["_id"])
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    def _apply(self, document, update, inserting=False):
        for path, value in update.get("$set", {}).items():
            _set_path(document, path, copy.deepcopy(value))
        if inserting:
            for path, value in update.get("$setOnInsert", {}).items():
                _set_path(document, path, copy.deepcopy(value))
        for path in update.get("$unset", {}):
            _unset_path(document, path)
        for path, amount in update.get("$inc", {}).items():
            _set_path(document, path, (_get_path(document, path) or 0) + amount)
        for path, value in update.get("$push", {}).items():
            current = _get_path(document, path) or []
            _set_path(document, path, current + [copy.deepcopy(value)])

    async def update_one(self, query, update, upsert=False):
        found = self._find(query)
        if found:
            existing = found[0]
            updated = copy.deepcopy(existing)
            self._apply(updated, update)
            self._check_unique(updated, ignore=existing)
            self.documents[self.documents.index(existing)] = updated
            return SimpleNamespace(matched_count=1, modified_count=int(updated != existing), upserted_id=None)
        if upsert:
            new = {key: value for key, value in query.items() if not isinstance(value, dict)}
            new["_id"] = ObjectId()
            self._apply(new, update, inserting=True)
            self._check_unique(new)
            self.documents.append(new)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=new["_id"])
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def update_many(self, query, update):
        modified = 0
        for existing in self._find(query):
            updated = copy.deepcopy(existing)
            self._apply(updated, update)
            if updated != existing:
                modified += 1
            self.documents[self.documents.index(existing)] = updated
        return SimpleNamespace(matched_count=modified, modified_count=modified)

    async def delete_one(self, query):
        found = self._find(query)
        if found:
            self.documents.remove(found[0])
            return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getitem__(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]

    def get_collection(self, name):
        return self[name]


def rpc_query(client, name, data):
    return client.get(f"/server/trpc/{name}", params={"input": json.dumps(data)})


def rpc_mutation(client, name, data):
    return client.post(f"/server/trpc/{name}", json=data)
