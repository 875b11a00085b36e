#!/usr/bin/env python3
"""
BibTeX Reader
Reads BibTeX source text into a Document, keeping what pybtex throws away:
the delimiter each value was written with, loose comments, @preamble and @string blocks.
"""

import re
import sys
import argparse
from typing import List, Optional, Tuple

from bibtex_document import Document, Entry, Property, CURLY, QUOTE, NONE


BLOCK_PATTERN = re.compile(r'@\s*([A-Za-z_]\w*)\s*([{(])')
KEY_PATTERN = re.compile(r'\s*([^\s,{}()"=#]+)\s*')
FIELD_PATTERN = re.compile(r'([^\s,{}()"=#%]+)\s*=\s*')
BARE_VALUE_PATTERN = re.compile(r'[^\s,{}()"#]+')

CLOSING = {'{': '}', '(': ')'}


class BibTeXParseError(ValueError):
    """Raised when the source text is not structurally valid BibTeX."""

    def __init__(self, line_num: int, message: str):
        self.line_num = line_num
        self.message = message
        super().__init__(f"Line {line_num}: {message}")


class BibTeXReader:
    """Single-use reader turning BibTeX text into a Document."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.pending_comments: List[str] = []
        self.document = Document()

    def line_num(self, pos: Optional[int] = None) -> int:
        """1-based line number of a position in the text."""
        if pos is None:
            pos = self.pos
        return self.text.count('\n', 0, pos) + 1

    def error(self, message: str, pos: Optional[int] = None) -> BibTeXParseError:
        return BibTeXParseError(self.line_num(pos), message)

    # ===== Whitespace and values =====

    def skip_whitespace(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def read_braced(self) -> str:
        """Read a {...} group starting at the opening brace; returns its contents."""
        start = self.pos
        depth = 0
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    self.pos += 1
                    return self.text[start + 1:self.pos - 1]
            self.pos += 1
        raise self.error("Unclosed brace in value", start)

    def read_quoted(self) -> str:
        """Read a "..." string; quotes inside braces do not end it."""
        start = self.pos
        depth = 0
        self.pos += 1
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
            elif char == '"' and depth <= 0:
                self.pos += 1
                return self.text[start + 1:self.pos - 1]
            self.pos += 1
        raise self.error("Unclosed quote in value", start)

    def read_value(self) -> Property:
        """
        Read a field value: {braced}, "quoted", a bare number/macro,
        or a # concatenation of those (kept verbatim, undelimited).
        """
        self.skip_whitespace()
        start = self.pos
        parts: List[Tuple[str, str]] = []

        while True:
            self.skip_whitespace()
            char = self.peek()
            if char == '{':
                parts.append((self.read_braced(), CURLY))
            elif char == '"':
                parts.append((self.read_quoted(), QUOTE))
            else:
                match = BARE_VALUE_PATTERN.match(self.text, self.pos)
                if not match:
                    raise self.error("Missing value")
                parts.append((match.group(0), NONE))
                self.pos = match.end()

            end = self.pos
            self.skip_whitespace()
            if self.peek() != '#':
                self.pos = end
                break
            self.pos += 1

        if len(parts) == 1:
            value, brace = parts[0]
            return Property(value, brace)
        return Property(self.text[start:end].strip(), NONE)

    def expect(self, chars: str, context: str):
        self.skip_whitespace()
        char = self.peek()
        if not char or char not in chars:
            found = repr(char) if char else 'end of file'
            expected = ' or '.join(repr(c) for c in chars)
            raise self.error(f"Expected {expected} {context}, found {found}")
        self.pos += 1
        return char

    # ===== Blocks =====

    def parse_comment_block(self, opener: str):
        """@comment{...}: every non-blank line of the body becomes a comment."""
        if opener == '{':
            self.pos -= 1
            body = self.read_braced()
        else:
            end = self.text.find(')', self.pos)
            if end < 0:
                raise self.error("Unclosed @comment block")
            body = self.text[self.pos:end]
            self.pos = end + 1
        for line in body.split('\n'):
            if line.strip():
                self.pending_comments.append(line.strip())

    def parse_preamble(self, opener: str, start: int):
        if self.document.preamble is not None:
            raise self.error("Multiple @preamble blocks", start)
        self.document.preamble = self.read_value()
        self.expect(CLOSING[opener], "to close @preamble")
        self.document.comments_before.extend(self.pending_comments)
        self.pending_comments = []

    def parse_string(self, opener: str):
        self.skip_whitespace()
        match = FIELD_PATTERN.match(self.text, self.pos)
        if not match:
            raise self.error("Expected 'name = value' in @string")
        self.pos = match.end()
        self.document.strings.append((match.group(1), self.read_value()))
        self.expect(CLOSING[opener], "to close @string")
        self.document.comments_before.extend(self.pending_comments)
        self.pending_comments = []

    def parse_entry(self, entry_type: str, opener: str, start: int):
        closer = CLOSING[opener]
        match = KEY_PATTERN.match(self.text, self.pos)
        if not match:
            raise self.error(f"Missing citation key in @{entry_type}", start)
        entry = Entry(entry_type, match.group(1), comments=self.pending_comments)
        self.pending_comments = []
        self.pos = match.end()

        separator = self.expect(',' + closer, f"after key '{entry.id}'")
        while separator == ',':
            self.skip_whitespace()
            if self.peek() == closer:
                self.pos += 1
                break
            field = FIELD_PATTERN.match(self.text, self.pos)
            if not field:
                if self.pos >= len(self.text):
                    raise self.error(f"Entry '{entry.id}' is not closed", start)
                if self.peek() == '%':
                    raise self.error(f"Expected 'field = value' in entry '{entry.id}' "
                                     "(% comments are not allowed inside an entry)")
                raise self.error(f"Expected 'field = value' in entry '{entry.id}'")
            self.pos = field.end()
            entry.properties[field.group(1).lower()] = self.read_value()
            separator = self.expect(',' + closer, f"after field '{field.group(1)}' in entry '{entry.id}'")

        self.document.entries.append(entry)

    def parse_block(self, at: int):
        """Parse the @block starting at `at`."""
        match = BLOCK_PATTERN.match(self.text, at)
        if not match:
            raise self.error("Expected @type{ or @type(", at)
        block_type, opener = match.group(1), match.group(2)
        self.pos = match.end()

        kind = block_type.lower()
        if kind == 'comment':
            self.parse_comment_block(opener)
        elif kind == 'preamble':
            self.parse_preamble(opener, at)
        elif kind == 'string':
            self.parse_string(opener)
        else:
            self.parse_entry(block_type, opener, at)

    # ===== Top level =====

    def parse(self) -> Document:
        """Read the whole text; loose lines outside blocks become comments."""
        while self.pos < len(self.text):
            line_end = self.text.find('\n', self.pos)
            if line_end < 0:
                line_end = len(self.text)
            line = self.text[self.pos:line_end]
            stripped = line.strip()

            if not stripped:
                self.pos = line_end + 1
                continue

            if stripped.startswith('%'):
                self.pending_comments.append(stripped[1:])
                self.pos = line_end + 1
                continue

            # First '@' on the line that opens a block; other '@'s are text
            at = self.text.find('@', self.pos, line_end)
            while at >= 0 and not BLOCK_PATTERN.match(self.text, at):
                at = self.text.find('@', at + 1, line_end)
            if at >= 0:
                before = self.text[self.pos:at].strip()
                if before:
                    self.pending_comments.append(before)
                self.parse_block(at)
                continue

            # Free text between entries is a comment too
            self.pending_comments.append(stripped)
            self.pos = line_end + 1

        self.document.comments_after.extend(self.pending_comments)
        self.pending_comments = []
        return self.document


def parse_bibtex(text: str) -> Document:
    """Parse BibTeX source text into a Document."""
    return BibTeXReader(text).parse()


def main():
    parser = argparse.ArgumentParser(
        description='BibTeX Reader - List the structure of a BibTeX file',
    )
    parser.add_argument('input_file', help='Input BibTeX file')
    args = parser.parse_args()

    try:
        with open(args.input_file, 'r', encoding='utf-8') as f:
            document = parse_bibtex(f.read())
    except FileNotFoundError:
        print(f"Error: File '{args.input_file}' not found")
        sys.exit(1)
    except BibTeXParseError as e:
        print(f"✗ {e}")
        sys.exit(1)

    print(f"Preamble: {'yes' if document.preamble else 'no'}")
    print(f"Strings: {len(document.strings)}")
    print(f"Comments: {len(document.comments_before)} before, {len(document.comments_after)} after")
    print(f"Entries: {len(document.entries)}")
    for entry in document.entries:
        print(f"  @{entry.type.lower()}{{{entry.id}}}: {', '.join(entry.properties)}")


if __name__ == "__main__":
    main()
