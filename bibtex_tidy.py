"""
BibTeX Tidy Engine
Canonical formatting, duplicate merging and sorting of a parsed BibTeX document.

The engine never touches the Document it is given: entries are copied first,
and every counter, fingerprint pool and sort key lives only for one call.
"""

import re
from collections import Counter
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from bibtex_document import (
    Document, Duplicate, Entry, Property, TidyResult, CURLY, QUOTE,
)
from bibtex_reader import parse_bibtex
from latex_escapes import escape_special_characters


# Option documentation, in the order the options are presented
OPTIONS = {
    'omit': 'Properties to remove (eg. abstract)',
    'curly': 'Enclose property values in curly brackets',
    'numeric': "Don't enclose numeric/month values",
    'space': 'Indent using n spaces',
    'tab': 'Indent using tabs',
    'tex': 'LaTeX contents to search for occurrences within',
    'metadata': 'Generate metadata for each entry',
    'sort': 'Sort entries alphabetically by id, or by the given fields',
    'merge': 'Merge duplicate entries',
    'strip_enclosing_braces': 'Where an entire value is enclosed in double braces, remove the extra braces',
    'drop_all_caps': 'Where values are all caps, make them title case',
    'escape_special_characters': 'Escape special characters, such as umlaut',
    'sort_properties': 'Sort the properties within entries',
}

# Spellings accepted in addition to the python names
OPTION_ALIASES = {
    'stripEnclosingBraces': 'strip_enclosing_braces',
    'dropAllCaps': 'drop_all_caps',
    'escapeSpecialCharacters': 'escape_special_characters',
    'escape': 'escape_special_characters',
    'sortProperties': 'sort_properties',
}

# Canonical property order used by sort_properties
FIELD_ORDER = [
    'title', 'shorttitle', 'author', 'year', 'month', 'day', 'journal',
    'booktitle', 'location', 'on', 'publisher', 'address', 'series',
    'volume', 'number', 'pages', 'doi', 'isbn', 'issn', 'url',
    'urldate', 'copyright', 'category', 'note', 'metadata',
]

MONTHS = ('jan', 'feb', 'mar', 'apr', 'may', 'jun',
          'jul', 'aug', 'sep', 'oct', 'nov', 'dec')

# Container fields counted across the document: (field, metadata label)
CONTAINER_FIELDS = [
    ('booktitle', 'bookcount'),
    ('journal', 'journalcount'),
    ('publisher', 'publishercount'),
]

FIELD_WIDTH = 14
ABSTRACT_LENGTH = 100
TITLE_LENGTH = 50

NON_WORD = re.compile(r'\W')
# Surname: first token followed by a comma, "and", "et" or the end of the value
SURNAME_PATTERN = re.compile(r'(\S+)\s*(,|and |et |$)')
NEWLINE_WHITESPACE = re.compile(r'\s*\n\s*')
NO_LOWERCASE = re.compile(r'[^a-z]+')
WORD = re.compile(r'\w\S*')
PAGE_RANGE = re.compile(r'(\d)\s*-\s*(\d)')
DIGITS = re.compile(r'[0-9]+')


class TidyOptionsError(ValueError):
    """Raised for option names or values the engine cannot use."""


class TidyOptions(NamedTuple):
    """Immutable set of tidy options; the defaults leave values as they are."""

    omit: Tuple[str, ...] = ()
    curly: bool = False
    numeric: bool = False
    space: int = 2
    tab: bool = False
    tex: str = ''
    metadata: bool = False
    sort: Union[bool, Tuple[str, ...]] = False
    merge: bool = False
    strip_enclosing_braces: bool = False
    drop_all_caps: bool = False
    escape_special_characters: bool = True
    sort_properties: bool = False

    @classmethod
    def from_dict(cls, options: Optional[Mapping[str, Any]] = None) -> 'TidyOptions':
        """
        Build options from a mapping using python or camelCase option names.

        Raises:
            TidyOptionsError: unknown option name or unusable value
        """
        values: Dict[str, Any] = {}
        for name, value in (options or {}).items():
            field = OPTION_ALIASES.get(name, name)
            if field not in cls._fields:
                raise TidyOptionsError(f"Unknown option '{name}'")
            values[field] = value

        if 'omit' in values:
            values['omit'] = _field_names('omit', values['omit'])
        if 'sort' in values:
            values['sort'] = _sort_fields(values['sort'])
        if 'space' in values:
            space = values['space']
            if isinstance(space, bool) or not isinstance(space, int) or space < 0:
                raise TidyOptionsError(f"Option 'space' must be a non-negative integer, got {space!r}")
        if 'tex' in values:
            if values['tex'] is None:
                values['tex'] = ''
            elif not isinstance(values['tex'], str):
                raise TidyOptionsError("Option 'tex' must be a string")
        for flag in ('curly', 'numeric', 'tab', 'metadata', 'merge', 'strip_enclosing_braces',
                     'drop_all_caps', 'escape_special_characters', 'sort_properties'):
            if flag in values:
                values[flag] = bool(values[flag])

        return cls(**values)

    @classmethod
    def coerce(cls, options: Union['TidyOptions', Mapping[str, Any], None]) -> 'TidyOptions':
        if isinstance(options, TidyOptions):
            return options
        return cls.from_dict(options)

    @property
    def indent(self) -> str:
        return '\t' if self.tab else ' ' * self.space


def _field_names(option: str, value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    try:
        names = tuple(value)
    except TypeError:
        raise TidyOptionsError(f"Option '{option}' must be a list of field names") from None
    if not all(isinstance(name, str) for name in names):
        raise TidyOptionsError(f"Option '{option}' must be a list of field names")
    return tuple(name.lower() for name in names)


def _sort_fields(value: Any) -> Union[bool, Tuple[str, ...]]:
    if value is None or value is False:
        return False
    if value is True:
        return ('id',)
    fields = _field_names('sort', value)
    return fields if fields else False


# ===== Normalization helpers =====

def normalize_text(value: str) -> str:
    """Drop every non-word character and lowercase: 'J. Chem. Phys.' -> 'jchemphys'."""
    return NON_WORD.sub('', value).lower()


def property_key(entry: Entry, name: str) -> Optional[str]:
    """Normalized value of a property, or None when missing or empty after normalizing."""
    prop = entry.properties.get(name)
    if prop is None:
        return None
    return normalize_text(prop.value) or None


def first_author_surname(author: str) -> str:
    """
    Normalized surname of the first author in a raw author value.

    Examples:
        'Smith, John and Jane Doe' -> 'smith'
        'John Smith and Jane Doe' -> 'smith'
        'Smith et al.' -> 'smith'

    Values that do not fit the pattern give an empty surname.
    """
    match = SURNAME_PATTERN.search(author)
    if not match:
        return ''
    return normalize_text(match.group(1))


def count_citations(tex: str, entry_id: str) -> int:
    """Number of non-overlapping occurrences of the citation key in the LaTeX text."""
    return tex.count(entry_id)


# ===== Frequency counters =====

def count_containers(entries: Sequence[Entry]) -> Tuple[Counter, Counter, Counter]:
    """Count raw booktitle, journal and publisher values across all entries."""
    proceedings: Counter = Counter()
    journals: Counter = Counter()
    publishers: Counter = Counter()
    counters = {'booktitle': proceedings, 'journal': journals, 'publisher': publishers}

    for entry in entries:
        for field, counter in counters.items():
            if field in entry.properties:
                counter[entry.properties[field].value] += 1

    return proceedings, journals, publishers


# ===== Duplicate detection =====

class Fingerprint:
    """Normalized identity of an entry used to spot duplicates."""

    def __init__(self, entry: Entry, doi: Optional[str], abstract: Optional[str], author_title: str):
        self.entry = entry
        self.doi = doi
        self.abstract = abstract
        self.author_title = author_title

    def matches(self, other: 'Fingerprint') -> bool:
        # Two entries with neither author nor title share ':' and match
        return bool(self.doi and self.doi == other.doi) or \
            bool(self.abstract and self.abstract == other.abstract) or \
            self.author_title == other.author_title

    def __repr__(self):
        return f"Fingerprint({self.entry.id!r}, doi={self.doi!r}, author_title={self.author_title!r})"


def entry_fingerprint(entry: Entry) -> Fingerprint:
    abstract = property_key(entry, 'abstract')
    surname = ''
    if property_key(entry, 'author'):
        surname = first_author_surname(entry.properties['author'].value)
    title = property_key(entry, 'title') or ''

    return Fingerprint(
        entry,
        doi=property_key(entry, 'doi'),
        abstract=abstract[:ABSTRACT_LENGTH] if abstract else None,
        author_title=f"{surname}:{title[:TITLE_LENGTH]}",
    )


def merge_duplicates(entries: Sequence[Entry]) -> List[Duplicate]:
    """
    Find entries matching an earlier entry and merge them into it.

    The first entry seen survives. Properties the survivor lacks are copied
    over from the duplicate; properties it already has are never replaced.
    Duplicates are not themselves candidates for later matches.
    """
    pool: List[Fingerprint] = []
    duplicates: List[Duplicate] = []

    for entry in entries:
        fingerprint = entry_fingerprint(entry)
        match = next((candidate for candidate in pool if fingerprint.matches(candidate)), None)
        if match is None:
            pool.append(fingerprint)
            continue

        survivor = match.entry
        duplicates.append(Duplicate(entry, survivor))
        for name, prop in entry.properties.items():
            if name not in survivor.properties:
                survivor.properties[name] = prop.copy()

    return duplicates


# ===== Sorting =====

def sort_key(entry: Entry, fields: Sequence[str]) -> str:
    """Composite key: id/type attributes lowercased, other fields normalized, joined by spaces."""
    parts = []
    for field in fields:
        if field in ('id', 'type'):
            parts.append(getattr(entry, field).lower())
        else:
            parts.append(property_key(entry, field) or '')
    return ' '.join(parts)


def order_entries(entries: Sequence[Entry], fields: Sequence[str]) -> List[Entry]:
    """
    Stable ascending sort on the composite key; sets entry.sort_index.

    tidy_document calls this after merging, so a surviving entry's key is
    built from its merged properties, including any filled in from its
    duplicates.
    """
    for entry in entries:
        entry.sort_index = sort_key(entry, fields)
    return sorted(entries, key=lambda entry: entry.sort_index)


# ===== Field rendering =====

def strip_enclosing_braces(value: str) -> str:
    """Remove one outer brace pair when the first '{' closes at the very end."""
    if len(value) < 2 or value[0] != '{' or value[-1] != '}':
        return value
    depth = 0
    for index, char in enumerate(value):
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0 and index < len(value) - 1:
                return value
    return value[1:-1] if depth == 0 else value


def title_case(value: str) -> str:
    return WORD.sub(lambda match: match.group(0)[0].upper() + match.group(0)[1:].lower(), value)


def normalize_pages(value: str) -> str:
    """First single-hyphen digit range becomes a double hyphen: 12-34 -> 12--34."""
    return PAGE_RANGE.sub(r'\1--\2', value, count=1)


def order_properties(names: List[str]) -> List[str]:
    """Known fields first in FIELD_ORDER order; the rest keep their relative order."""
    def rank(name):
        if name in FIELD_ORDER:
            return (0, FIELD_ORDER.index(name))
        return (1, 0)
    return sorted(names, key=rank)


def delimit(prop: Property, value: Optional[str] = None) -> str:
    if value is None:
        value = prop.value
    if prop.brace == CURLY:
        return f"{{{value}}}"
    if prop.brace == QUOTE:
        return f'"{value}"'
    return value


def render_value(name: str, prop: Property, options: TidyOptions) -> str:
    """Normalized, delimited text for one property value."""
    value = NEWLINE_WHITESPACE.sub(' ', prop.value).strip()

    if options.strip_enclosing_braces:
        value = strip_enclosing_braces(value)
    if options.drop_all_caps and NO_LOWERCASE.fullmatch(value):
        value = title_case(value)
    if options.escape_special_characters:
        value = escape_special_characters(value)
    if name == 'pages':
        value = normalize_pages(value)

    if options.curly:
        braced = f"{{{value}}}"
    else:
        braced = delimit(prop, value)

    if options.numeric:
        if DIGITS.fullmatch(value):
            braced = value.lstrip('0') or '0'
        elif name == 'month' and value[:3].lower() in MONTHS:
            braced = value[:3].lower()

    return braced


def render_entry(entry: Entry, options: TidyOptions) -> str:
    names = [name for name in entry.properties if name not in options.omit]
    if options.sort_properties:
        names = order_properties(names)

    indent = options.indent
    lines = [
        f"{indent}{name.ljust(FIELD_WIDTH)}= {render_value(name, entry.properties[name], options)}"
        for name in names
    ]
    comments = ''.join(f"%{comment}\n" for comment in entry.comments)
    return f"{comments}@{entry.type.lower()}{{{entry.id},\n" + ',\n'.join(lines) + "\n}"


def annotate_entry(entry: Entry, proceedings: Counter, journals: Counter, publishers: Counter):
    """Replace any metadata property with a fresh trailing summary of usage counts."""
    counters = {'booktitle': proceedings, 'journal': journals, 'publisher': publishers}
    summary = [f"citations: {entry.citations}"]
    for field, label in CONTAINER_FIELDS:
        if field in entry.properties:
            summary.append(f"{label}: {counters[field][entry.properties[field].value]}")

    entry.properties.pop('metadata', None)
    entry.properties['metadata'] = Property(', '.join(summary), CURLY)


# ===== Document assembly =====

def assemble(document: Document, entries: Sequence[Entry], options: TidyOptions) -> str:
    """Comments before, preamble, @string macros, entries, trailing comments."""
    parts = [f"%{comment}\n" for comment in document.comments_before]

    if document.preamble is not None:
        parts.append(f"@preamble{{{delimit(document.preamble)}}}\n")
    for name, prop in document.strings:
        parts.append(f"@string{{{name} = {delimit(prop)}}}\n")

    if entries:
        parts.append('\n'.join(render_entry(entry, options) for entry in entries) + '\n')

    parts.extend(f"%{comment}\n" for comment in document.comments_after)
    return ''.join(parts)


def tidy_document(document: Document,
                  options: Union[TidyOptions, Mapping[str, Any], None] = None) -> TidyResult:
    """
    Tidy a parsed document.

    Returns a TidyResult holding the formatted text, the surviving entries in
    output order (copies, with merges and metadata applied), the container
    counters and the list of merged duplicates.
    """
    options = TidyOptions.coerce(options)
    entries = [entry.copy() for entry in document.entries]

    proceedings, journals, publishers = count_containers(entries)

    duplicates = merge_duplicates(entries) if options.merge else []

    if options.sort:
        entries = order_entries(entries, options.sort)

    merged_away = {id(duplicate.entry) for duplicate in duplicates}
    entries = [entry for entry in entries if id(entry) not in merged_away]

    for entry in entries:
        entry.citations = count_citations(options.tex, entry.id)
        if options.metadata:
            annotate_entry(entry, proceedings, journals, publishers)

    bibtex = assemble(document, entries, options)
    return TidyResult(bibtex, entries, proceedings, journals, publishers, duplicates)


def tidy(text: str, options: Union[TidyOptions, Mapping[str, Any], None] = None) -> TidyResult:
    """Parse BibTeX source text and tidy it."""
    return tidy_document(parse_bibtex(text), options)
