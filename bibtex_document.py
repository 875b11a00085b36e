"""
BibTeX Document Model
In-memory representation of a parsed BibTeX file, shared by the reader and the tidy engine.
"""

from typing import Dict, List, Optional, Tuple
from collections import Counter


# Value delimiters
CURLY = 'curly'
QUOTE = 'quote'
NONE = 'none'

BRACE_STYLES = (CURLY, QUOTE, NONE)


class Property:
    """A single field value together with the delimiter it was written with."""

    def __init__(self, value: str, brace: str = CURLY):
        if brace not in BRACE_STYLES:
            raise ValueError(f"Unknown brace style '{brace}'")
        self.value = value
        self.brace = brace

    def copy(self) -> 'Property':
        return Property(self.value, self.brace)

    def __eq__(self, other):
        if not isinstance(other, Property):
            return NotImplemented
        return self.value == other.value and self.brace == other.brace

    def __repr__(self):
        return f"Property({self.value!r}, {self.brace!r})"


class Entry:
    """One bibliographic record: @type{id, field = value, ...}."""

    def __init__(self, entry_type: str, entry_id: str,
                 properties: Optional[Dict[str, Property]] = None,
                 comments: Optional[List[str]] = None):
        self.type = entry_type
        self.id = entry_id
        self.properties: Dict[str, Property] = properties if properties is not None else {}
        self.comments: List[str] = comments if comments is not None else []

        # Filled in by the tidy engine
        self.citations = 0
        self.sort_index: Optional[str] = None

    def copy(self) -> 'Entry':
        """Return an entry that shares no mutable state with this one."""
        entry = Entry(
            self.type,
            self.id,
            {name: prop.copy() for name, prop in self.properties.items()},
            list(self.comments)
        )
        entry.citations = self.citations
        entry.sort_index = self.sort_index
        return entry

    def __repr__(self):
        return f"Entry(@{self.type}{{{self.id}}}, {len(self.properties)} properties)"


class Document:
    """A whole BibTeX file: preamble, macros, loose comments and entries."""

    def __init__(self, entries: Optional[List[Entry]] = None,
                 preamble: Optional[Property] = None,
                 strings: Optional[List[Tuple[str, Property]]] = None,
                 comments_before: Optional[List[str]] = None,
                 comments_after: Optional[List[str]] = None):
        self.entries: List[Entry] = entries if entries is not None else []
        self.preamble = preamble
        self.strings: List[Tuple[str, Property]] = strings if strings is not None else []
        self.comments_before: List[str] = comments_before if comments_before is not None else []
        self.comments_after: List[str] = comments_after if comments_after is not None else []


class Duplicate:
    """An entry that was merged into an earlier entry."""

    def __init__(self, entry: Entry, duplicate_of: Entry):
        self.entry = entry
        self.duplicate_of = duplicate_of

    def __repr__(self):
        return f"Duplicate({self.entry.id!r} -> {self.duplicate_of.id!r})"


class TidyResult:
    """Everything a tidy run produces."""

    def __init__(self, bibtex: str, entries: List[Entry],
                 proceedings: Counter, journals: Counter, publishers: Counter,
                 duplicates: List[Duplicate]):
        self.bibtex = bibtex
        self.entries = entries
        self.proceedings = proceedings
        self.journals = journals
        self.publishers = publishers
        self.duplicates = duplicates
