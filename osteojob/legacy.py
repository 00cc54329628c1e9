"""
Typed views over the legacy WordPress export.

The export is three JSON arrays: users, jobs and an optional job to
employer-email mapping. Records are read-only; missing or oddly typed
fields become empty values here and are defaulted by the transformer.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from .errors import InputError
from .normalize import parse_count

EMPLOYER_ROLE = "wp_job_board_pro_employer"

T = TypeVar("T")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _text_list(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if v is not None and str(v).strip())


def _meta(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): _text(v) for k, v in value.items() if v is not None}


class JobMeta:
    """
    Accessor for the free-form job metadata bag.

    Each field declares its key chain; the first key with a non-blank
    value wins.
    """

    EMPLOYER_POSTED_BY = ("_job_employer_posted_by",)
    CITY = ("custom-text-13457249", "_job_location")
    ADDRESS = ("custom-textarea-13228385",)
    SALARY = ("_job_salary",)
    VIEWED_COUNT = ("_viewed_count",)

    def __init__(self, raw: Optional[Mapping[str, str]] = None):
        self._raw = dict(raw or {})

    def first(self, keys: Tuple[str, ...], default: Optional[str] = None) -> Optional[str]:
        for key in keys:
            value = self._raw.get(key)
            if value is not None and value.strip():
                return value.strip()
        return default

    @property
    def employer_posted_by(self) -> Optional[str]:
        return self.first(self.EMPLOYER_POSTED_BY)

    @property
    def city(self) -> Optional[str]:
        return self.first(self.CITY)

    @property
    def address(self) -> Optional[str]:
        return self.first(self.ADDRESS)

    @property
    def salary(self) -> Optional[str]:
        return self.first(self.SALARY)

    @property
    def viewed_count(self) -> int:
        return parse_count(self.first(self.VIEWED_COUNT))

    def __eq__(self, other):
        return isinstance(other, JobMeta) and self._raw == other._raw

    def __repr__(self):
        return f"JobMeta({self._raw!r})"


@dataclass(frozen=True)
class LegacyUser:
    id: Any
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    display_name: str = ""
    username: str = ""
    roles: Tuple[str, ...] = ()
    description: str = ""
    registered: str = ""
    meta: Dict[str, str] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LegacyUser":
        meta = _meta(data.get("meta"))
        return cls(
            id=data.get("id"),
            email=_text(data.get("email")).strip(),
            first_name=_text(data.get("first_name")) or meta.get("first_name", ""),
            last_name=_text(data.get("last_name")) or meta.get("last_name", ""),
            display_name=_text(data.get("display_name")),
            username=_text(data.get("username")),
            roles=_text_list(data.get("roles")),
            description=_text(data.get("description")) or meta.get("description", ""),
            registered=_text(data.get("registered")),
            meta=meta,
        )

    @property
    def is_employer(self) -> bool:
        return EMPLOYER_ROLE in self.roles


@dataclass(frozen=True)
class LegacyJob:
    id: Any
    title: str = ""
    content: str = ""
    excerpt: str = ""
    job_types: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    locations: Tuple[str, ...] = ()
    job_location: str = ""
    status: str = ""
    date_posted: str = ""
    author_id: Any = None
    meta: JobMeta = field(default_factory=JobMeta, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LegacyJob":
        return cls(
            id=data.get("id"),
            title=_text(data.get("title")),
            content=_text(data.get("content")),
            excerpt=_text(data.get("excerpt")),
            job_types=_text_list(data.get("job_types")),
            categories=_text_list(data.get("categories")),
            locations=_text_list(data.get("locations")),
            job_location=_text(data.get("job_location")),
            status=_text(data.get("status")),
            date_posted=_text(data.get("date_posted")),
            author_id=data.get("author_id"),
            meta=JobMeta(_meta(data.get("meta"))),
        )

    @property
    def employer_ref(self) -> Optional[str]:
        """Legacy id of the posting employer: meta poster, then author."""
        posted_by = self.meta.employer_posted_by
        if posted_by:
            return posted_by
        if self.author_id is None or _text(self.author_id).strip() in ("", "0"):
            return None
        return _text(self.author_id).strip()

    @property
    def country(self) -> Optional[str]:
        return self.locations[0] if self.locations else None


@dataclass(frozen=True)
class EmailMapping:
    job_id: Any
    job_title: str = ""
    employer_email: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmailMapping":
        return cls(
            job_id=data.get("job_id"),
            job_title=_text(data.get("job_title")),
            employer_email=_text(data.get("employer_email")),
        )


def load_export(path: Path, factory: Callable[[Mapping[str, Any]], T]) -> List[T]:
    """
    Read a legacy export file wholesale.

    Args:
        path: JSON file holding an array of objects
        factory: Converts one object into a typed record

    Raises:
        InputError: If the file is missing, not JSON, or not an array of objects
    """
    if not path.exists():
        raise InputError(f"Input file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InputError(f"Malformed JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise InputError(f"{path} is not UTF-8 text: {e}") from e
    except OSError as e:
        raise InputError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, list):
        raise InputError(f"Expected a JSON array in {path}, got {type(data).__name__}")

    records = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise InputError(f"Entry {index} in {path} is not an object")
        records.append(factory(item))
    return records


def load_users(path: Path) -> List[LegacyUser]:
    return load_export(path, LegacyUser.from_dict)


def load_jobs(path: Path) -> List[LegacyJob]:
    return load_export(path, LegacyJob.from_dict)


def load_email_mappings(path: Path) -> List[EmailMapping]:
    return load_export(path, EmailMapping.from_dict)
