"""File-backed data access layer for animal listings.

Each record lives in `<content_dir>/<category>/<id>.md` as a Markdown file
whose YAML front-matter holds the listing fields. The body is left empty;
the static-site generator only reads the metadata block.

The store is async to match the rest of the request path: file reads and
writes go through `aiofiles`, directory operations through worker threads.
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Mapping, Tuple

import aiofiles
import frontmatter

from models.animal_record import AVAILABILITY_VALUES, CATEGORIES, AnimalRecord
from utils.errors import Conflict, InvalidInput, NotFound
from utils.slugs import is_slug, slugify

LOGGER = logging.getLogger(__name__)

RECORD_EXTENSION = ".md"
REQUIRED_FIELDS = ("name", "description", "availability")


def ensure_category(category: str) -> str:
    """Return `category` unchanged or raise InvalidInput if it is not a known collection."""
    if category not in CATEGORIES:
        raise InvalidInput(f"Invalid type: {category!r}")
    return category


class RecordStore:
    """Read and write listing records as front-matter files.

    Writes for the same `(category, id)` are serialised with an in-process
    lock, so a create cannot interleave with another create, update or delete
    of the same record inside this process. Separate processes still race.
    """

    def __init__(self, content_dir: Path | str) -> None:
        self.content_dir = Path(content_dir)
        # (lock, number of holders and waiters); entries are dropped when the count reaches zero.
        self._locks: Dict[Tuple[str, str], List[Any]] = {}

    @asynccontextmanager
    async def _record_lock(self, category: str, record_id: str) -> AsyncIterator[None]:
        """Hold the in-process lock for one record, discarding it once unused."""
        key = (category, record_id)
        entry = self._locks.setdefault(key, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def _category_dir(self, category: str) -> Path:
        return self.content_dir / ensure_category(category)

    def _record_path(self, category: str, record_id: str) -> Path:
        """Return the file path for a record, treating non-slug ids as missing."""
        if not is_slug(record_id):
            raise NotFound("Not found")
        return self._category_dir(category) / f"{record_id}{RECORD_EXTENSION}"

    async def list_records(self, category: str) -> List[AnimalRecord]:
        """Return every record of a category, ordered by id.

        A category directory that does not exist yet yields an empty list.
        """
        directory = self._category_dir(category)
        if not directory.is_dir():
            return []

        paths = sorted(p for p in directory.iterdir() if p.suffix == RECORD_EXTENSION and p.is_file())
        records: List[AnimalRecord] = []
        for path in paths:
            records.append(await self._read(category, path.stem, path))
        return records

    async def get_record(self, category: str, record_id: str) -> AnimalRecord:
        """Return one record or raise NotFound."""
        path = self._record_path(category, record_id)
        if not path.is_file():
            raise NotFound("Not found")
        return await self._read(category, record_id, path)

    async def create_record(self, category: str, fields: Mapping[str, Any]) -> AnimalRecord:
        """Create a record whose id is the slug of `fields["name"]`.

        Raises:
            InvalidInput: A required field is missing or empty, the
                availability is unknown, or the name has no slug characters.
            Conflict: A record with the same slug already exists in `category`.
        """
        ensure_category(category)
        missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
        if missing:
            raise InvalidInput("Missing required fields", {"fields": missing})
        self._check_availability(fields["availability"])

        record_id = slugify(str(fields["name"]))
        if not record_id:
            raise InvalidInput("Name must contain at least one letter or digit")

        record = AnimalRecord(
            category=category,
            id=record_id,
            name=str(fields["name"]),
            description=str(fields["description"]),
            availability=str(fields["availability"]),
            images=list(fields.get("images") or []),
        )

        async with self._record_lock(category, record_id):
            path = self._record_path(category, record_id)
            if path.exists():
                raise Conflict("An animal with this name already exists")
            await self._write(path, record)

        LOGGER.info("Created %s/%s", category, record_id)
        return record

    async def update_record(self, category: str, record_id: str, fields: Mapping[str, Any]) -> AnimalRecord:
        """Merge `fields` over the stored record and persist it.

        Empty or omitted text fields keep their stored value. `images`
        replaces the stored list whenever it is supplied, so an explicit
        empty list clears it.
        """
        path = self._record_path(category, record_id)
        async with self._record_lock(category, record_id):
            if not path.is_file():
                raise NotFound("Not found")
            existing = await self._read(category, record_id, path)

            availability = fields.get("availability") or existing.availability
            self._check_availability(availability)
            images = fields.get("images")

            record = AnimalRecord(
                category=category,
                id=record_id,
                name=str(fields.get("name") or existing.name),
                description=str(fields.get("description") or existing.description),
                availability=str(availability),
                images=list(images) if images is not None else existing.images,
            )
            await self._write(path, record)

        LOGGER.info("Updated %s/%s", category, record_id)
        return record

    async def delete_record(self, category: str, record_id: str) -> None:
        """Remove the record file. Referenced image assets are left in place."""
        path = self._record_path(category, record_id)
        async with self._record_lock(category, record_id):
            try:
                await asyncio.to_thread(path.unlink)
            except FileNotFoundError as exc:
                raise NotFound("Not found") from exc
        LOGGER.info("Deleted %s/%s", category, record_id)

    @staticmethod
    def _check_availability(value: Any) -> None:
        if value not in AVAILABILITY_VALUES:
            raise InvalidInput(
                f"Invalid availability: {value!r}",
                {"allowed": list(AVAILABILITY_VALUES)},
            )

    async def _read(self, category: str, record_id: str, path: Path) -> AnimalRecord:
        """Parse a record file into an AnimalRecord."""
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            text = await f.read()
        metadata = frontmatter.loads(text).metadata
        return AnimalRecord(
            category=category,
            id=record_id,
            name=str(metadata.get("name") or ""),
            description=str(metadata.get("description") or ""),
            availability=str(metadata.get("availability") or ""),
            images=list(metadata.get("images") or []),
        )

    async def _write(self, path: Path, record: AnimalRecord) -> None:
        """Write the record to a temporary sibling and move it into place."""
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        post = frontmatter.Post("", **record.front_matter())
        text = frontmatter.dumps(post, sort_keys=False) + "\n"

        tmp_path = path.with_name(f".{path.name}.tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(text)
        await asyncio.to_thread(os.replace, tmp_path, path)
