"""In-memory prompt store owned by a single client instance."""
from typing import Callable, Dict, List, Optional, Set

from .models import PromptFilter, PromptRecord


class PromptStore:
    """Keyed collection of prompt records, at most one record per id.

    Reads return records in insertion order. Replacing a record keeps its
    position, so results are stable between mutations.

    Example:
        store = PromptStore()
        store.upsert(record)
        store.find(PromptFilter(agent_id="agent-1"))
        store.remove_where(lambda prompt_id: prompt_id == record.id)
    """

    def __init__(self):
        self._records: Dict[str, PromptRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, prompt_id: object) -> bool:
        return prompt_id in self._records

    def ids(self) -> Set[str]:
        """Get the set of stored prompt ids."""
        return set(self._records)

    def get(self, prompt_id: str) -> Optional[PromptRecord]:
        """Look up a record by id, None if absent."""
        return self._records.get(prompt_id)

    def upsert(self, record: PromptRecord) -> None:
        """Insert the record, or replace the stored record with the same id in full."""
        self._records[record.id] = record

    def remove_where(self, predicate: Callable[[str], bool]) -> int:
        """Delete every record whose id satisfies the predicate.

        Returns:
            Number of records removed (0 is not an error).
        """
        doomed = [prompt_id for prompt_id in self._records if predicate(prompt_id)]
        for prompt_id in doomed:
            del self._records[prompt_id]
        return len(doomed)

    def find(self, query: Optional[PromptFilter] = None) -> List[PromptRecord]:
        """Return every record matching the filter (all records for an empty filter)."""
        if query is None:
            return list(self._records.values())
        return [record for record in self._records.values() if query.matches(record)]

    def find_one(self, query: Optional[PromptFilter] = None) -> Optional[PromptRecord]:
        """Return the first matching record, or None."""
        if query is not None and isinstance(query.id, str):
            # Id is the store key, skip the scan
            record = self._records.get(query.id)
            return record if record is not None and query.matches(record) else None

        for record in self._records.values():
            if query is None or query.matches(record):
                return record
        return None
