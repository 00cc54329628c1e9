"""
Run-scoped counters.

Every component returns a RunStats for the work it did; callers merge
them with ``+``. Nothing is accumulated in module state.
"""

from dataclasses import dataclass, fields


@dataclass
class RunStats:
    total: int = 0
    attempted: int = 0
    inserted: int = 0
    updated: int = 0
    duplicates: int = 0
    skipped: int = 0
    errors: int = 0
    matched: int = 0
    already_set: int = 0
    not_found: int = 0
    multiple_matches: int = 0
    used_placeholder: int = 0
    email_not_found: int = 0
    alias_unavailable: int = 0

    def __add__(self, other: "RunStats") -> "RunStats":
        if not isinstance(other, RunStats):
            return NotImplemented
        return RunStats(**{
            f.name: getattr(self, f.name) + getattr(other, f.name)
            for f in fields(self)
        })

    @property
    def exit_code(self) -> int:
        """0 unless a record failed; duplicates and placeholders are success."""
        return 1 if self.errors > 0 else 0

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}
