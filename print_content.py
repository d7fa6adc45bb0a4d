"""Print every listing record stored under the content directory.

This script walks each category, parses the front-matter of every record
file and prints the non-empty fields to stdout. It reuses the same
`CONTENT_DIR` / `PROJECT_ROOT` behavior as the application via
`utils.settings.AdminSettings`.

Run: set `CONTENT_DIR` (or `PROJECT_ROOT`) and run `python print_content.py`.
"""
import asyncio
from typing import List

from dal.record_dal import RecordStore
from models.animal_record import CATEGORIES, AnimalRecord
from utils.settings import AdminSettings


def _describe_images(record: AnimalRecord) -> List[str]:
    """Return one display line per image reference.

    Legacy references are plain URLs; newer ones are {full, thumb} pairs.
    """
    lines = []
    for ref in record.images:
        if isinstance(ref, dict):
            lines.append(f"{ref.get('full')} (thumb {ref.get('thumb')})")
        else:
            lines.append(str(ref))
    return lines


def _print_record(record: AnimalRecord) -> None:
    print(f"  {record.id}: name={record.name!r}; availability={record.availability!r}")
    description = record.description.strip()
    if description:
        print(f"    description={description!r}")
    for line in _describe_images(record):
        print(f"    image {line}")


async def main() -> None:
    """Print all records of all categories."""
    settings = AdminSettings.from_env()
    store = RecordStore(settings.content_dir)
    for category in CATEGORIES:
        records = await store.list_records(category)
        if not records:
            continue
        print(f"Category: {category} ({len(records)})")
        for record in records:
            _print_record(record)
        print()


if __name__ == "__main__":
    asyncio.run(main())
