#!/usr/bin/env python3
"""
BibTeX Tidy
Command-line front end: reformat, sort and deduplicate a BibTeX file (no API calls).
"""

import sys
import argparse
from typing import Any, Dict, List, Optional

from pybtex.database import parse_string
from pybtex.exceptions import PybtexError

from bibtex_document import Document, TidyResult
from bibtex_reader import BibTeXParseError, parse_bibtex
from bibtex_tidy import OPTIONS, TidyOptions, TidyOptionsError, tidy_document


def clean_filepath(filepath: str) -> str:
    """
    Clean file path by removing surrounding quotes and whitespace.
    """
    if not filepath:
        return filepath

    cleaned = filepath.strip()

    # Paths pasted from a file manager often arrive quoted
    if (cleaned.startswith('"') and cleaned.endswith('"')) or \
       (cleaned.startswith("'") and cleaned.endswith("'")):
        cleaned = cleaned[1:-1]

    return cleaned.strip()


def option_help(name: str) -> str:
    """Help text for an option, taken from the option table."""
    default = TidyOptions._field_defaults[name]
    if default in (False, (), ''):
        return OPTIONS[name]
    return f"{OPTIONS[name]} (default: {default})"


class BibTeXTidier:
    """Reads, tidies and writes a BibTeX file, reporting what changed."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.warnings: List[str] = []

    def log(self, message: str):
        """Print message if verbose mode is enabled."""
        if self.verbose:
            print(f"[INFO] {message}", file=sys.stderr)

    def load_bibtex(self, filepath: str) -> Document:
        """Load and parse a BibTeX file."""
        self.log(f"Loading BibTeX file: {filepath}")

        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()

        try:
            document = parse_bibtex(text)
        except BibTeXParseError as e:
            print(f"\n{'='*60}", file=sys.stderr)
            print("ERROR: Failed to parse BibTeX file", file=sys.stderr)
            print(f"{'='*60}", file=sys.stderr)
            print(f"\n{e}\n", file=sys.stderr)
            print("Common issues: missing commas, missing braces, or unclosed quotes.", file=sys.stderr)
            print(f"Look around line {e.line_num} of {filepath}.", file=sys.stderr)
            print(f"{'='*60}", file=sys.stderr)
            raise

        self.log(f"Loaded {len(document.entries)} entries")
        return document

    def tidy(self, document: Document, options: TidyOptions) -> TidyResult:
        """Run the tidy engine over a loaded document."""
        self.log(f"Tidying {len(document.entries)} entries")
        result = tidy_document(document, options)
        if options.merge:
            self.log(f"Merged {len(result.duplicates)} duplicate entries")
        if options.sort:
            self.log(f"Sorted by: {', '.join(options.sort)}")
        return result

    def check_output(self, bibtex: str) -> bool:
        """Confirm that pybtex can read the tidied text back."""
        try:
            bib_data = parse_string(bibtex, 'bibtex')
        except PybtexError as e:
            self.warnings.append(f"pybtex could not read the tidied output: {e}")
            return False
        self.log(f"pybtex read back {len(bib_data.entries)} entries")
        return True

    def save_bibtex(self, bibtex: str, filepath: str):
        """Save tidied BibTeX text to file."""
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(bibtex)
        self.log(f"Saved to: {filepath}")

    def generate_report(self, result: TidyResult) -> str:
        """Generate tidy report."""
        report = []
        report.append("\n" + "=" * 60)
        report.append("BIBTEX TIDY REPORT")
        report.append("=" * 60)

        report.append(f"\nEntries written: {len(result.entries)}")

        if result.duplicates:
            report.append(f"\nDuplicates Merged: {len(result.duplicates)}")
            for duplicate in result.duplicates:
                report.append(f"  ✓ {duplicate.entry.id} merged into {duplicate.duplicate_of.id}")

        containers = [
            ('Journals', result.journals),
            ('Proceedings', result.proceedings),
            ('Publishers', result.publishers),
        ]
        for label, counter in containers:
            if counter:
                report.append(f"\n{label}: {len(counter)}")
                for name, count in counter.most_common():
                    report.append(f"  {count:4d}  {name}")

        if self.warnings:
            report.append(f"\nWarnings: {len(self.warnings)}")
            for warning in self.warnings:
                report.append(f"  ⚠ {warning}")

        report.append("\n" + "=" * 60)
        return "\n".join(report)


def build_options(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate parsed arguments into a tidy options mapping."""
    options: Dict[str, Any] = {
        'omit': args.omit or (),
        'curly': args.curly,
        'numeric': args.numeric,
        'space': args.space,
        'tab': args.tab,
        'metadata': args.metadata,
        'merge': args.merge,
        'strip_enclosing_braces': args.strip_enclosing_braces,
        'drop_all_caps': args.drop_all_caps,
        'escape_special_characters': not args.no_escape,
        'sort_properties': args.sort_properties,
    }

    # --sort alone sorts by id; --sort year title sorts by those fields
    if args.sort is None:
        options['sort'] = False
    elif not args.sort:
        options['sort'] = True
    else:
        options['sort'] = args.sort

    if args.tex:
        with open(clean_filepath(args.tex), 'r', encoding='utf-8') as f:
            options['tex'] = f.read()

    return options


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description='BibTeX Tidy - Reformat, sort and merge duplicate BibTeX entries',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print a tidied copy
  bibtex-tidy input.bib

  # Merge duplicates, sort by year then title, save to a file
  bibtex-tidy input.bib --merge --sort year title -o tidy.bib

  # Drop abstracts, use bare numbers and months
  bibtex-tidy input.bib --omit abstract --numeric

  # Count citations in a LaTeX document
  bibtex-tidy input.bib --tex paper.tex --metadata -o tidy.bib
        """
    )

    parser.add_argument('input_file', help='Input BibTeX file')
    parser.add_argument('-o', '--output', help='Output file (default: print to stdout)')
    parser.add_argument('-r', '--report-file', help='Save report to file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--check', action='store_true',
                        help='Check that pybtex can read the tidied output')

    # Tidy options
    parser.add_argument('--omit', nargs='+', metavar='FIELD', help=option_help('omit'))
    parser.add_argument('--curly', action='store_true', help=option_help('curly'))
    parser.add_argument('--numeric', action='store_true', help=option_help('numeric'))
    parser.add_argument('--space', type=int, default=TidyOptions._field_defaults['space'],
                        metavar='N', help=option_help('space'))
    parser.add_argument('--tab', action='store_true', help=option_help('tab'))
    parser.add_argument('--tex', metavar='FILE', help=option_help('tex'))
    parser.add_argument('--metadata', action='store_true', help=option_help('metadata'))
    parser.add_argument('--sort', nargs='*', metavar='FIELD', help=option_help('sort'))
    parser.add_argument('--merge', action='store_true', help=option_help('merge'))
    parser.add_argument('--strip-enclosing-braces', action='store_true',
                        help=option_help('strip_enclosing_braces'))
    parser.add_argument('--drop-all-caps', action='store_true', help=option_help('drop_all_caps'))
    parser.add_argument('--no-escape', action='store_true',
                        help='Do not escape special characters, such as umlaut')
    parser.add_argument('--sort-properties', action='store_true', help=option_help('sort_properties'))

    args = parser.parse_args(argv)

    args.input_file = clean_filepath(args.input_file)
    if args.output:
        args.output = clean_filepath(args.output)
    if args.report_file:
        args.report_file = clean_filepath(args.report_file)

    tidier = BibTeXTidier(verbose=args.verbose)

    try:
        options = TidyOptions.from_dict(build_options(args))
        document = tidier.load_bibtex(args.input_file)
        result = tidier.tidy(document, options)

        if args.check:
            tidier.check_output(result.bibtex)

        # The report goes to stderr when stdout carries the BibTeX itself
        report_stream = sys.stdout
        if args.output:
            tidier.save_bibtex(result.bibtex, args.output)
            print(f"\n✓ Tidied BibTeX saved to: {args.output}")
        else:
            sys.stdout.write(result.bibtex)
            report_stream = sys.stderr

        report = tidier.generate_report(result)
        if args.report_file:
            with open(args.report_file, 'w', encoding='utf-8') as f:
                f.write(report)
            print(f"\n✓ Report saved to: {args.report_file}", file=report_stream)
        else:
            print(report, file=report_stream)

    except FileNotFoundError as e:
        print(f"Error: File '{e.filename}' not found", file=sys.stderr)
        sys.exit(1)
    except TidyOptionsError as e:
        parser.error(str(e))
    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
