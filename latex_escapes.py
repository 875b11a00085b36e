"""
Unicode -> LaTeX escape table.

Each row is (pattern, replacement) where the pattern is a regular expression
and the replacement a re.sub template (backslashes doubled). Rows are applied
one after another, in the order listed, each one over the whole value.
Only non-ASCII input is ever matched, so plain ASCII text passes through
unchanged and escaped output is never escaped a second time.
"""

import re
from typing import List, Pattern, Tuple


ESCAPE_TABLE: List[Tuple[str, str]] = [
    # Decomposed text: ASCII letter followed by a combining mark
    (r"([A-Za-z])\u0300", r"{\\`\1}"),
    (r"([A-Za-z])\u0301", r"{\\'\1}"),
    (r"([A-Za-z])\u0302", r"{\\^\1}"),
    (r"([A-Za-z])\u0303", r"{\\~\1}"),
    (r"([A-Za-z])\u0304", r"{\\=\1}"),
    (r"([A-Za-z])\u0306", r"{\\u{\1}}"),
    (r"([A-Za-z])\u0307", r"{\\.\1}"),
    (r"([A-Za-z])\u0308", r'{\\"\1}'),
    (r"([A-Za-z])\u030a", r"{\\r{\1}}"),
    (r"([A-Za-z])\u030b", r"{\\H{\1}}"),
    (r"([A-Za-z])\u030c", r"{\\v{\1}}"),
    (r"([A-Za-z])\u0327", r"{\\c{\1}}"),
    (r"([A-Za-z])\u0328", r"{\\k{\1}}"),

    # Latin-1 supplement
    ("À", r"{\\`A}"), ("Á", r"{\\'A}"), ("Â", r"{\\^A}"), ("Ã", r"{\\~A}"),
    ("Ä", r'{\\"A}'), ("Å", r"{\\AA}"), ("Æ", r"{\\AE}"), ("Ç", r"{\\c{C}}"),
    ("È", r"{\\`E}"), ("É", r"{\\'E}"), ("Ê", r"{\\^E}"), ("Ë", r'{\\"E}'),
    ("Ì", r"{\\`I}"), ("Í", r"{\\'I}"), ("Î", r"{\\^I}"), ("Ï", r'{\\"I}'),
    ("Ð", r"{\\DH}"), ("Ñ", r"{\\~N}"),
    ("Ò", r"{\\`O}"), ("Ó", r"{\\'O}"), ("Ô", r"{\\^O}"), ("Õ", r"{\\~O}"),
    ("Ö", r'{\\"O}'), ("Ø", r"{\\O}"),
    ("Ù", r"{\\`U}"), ("Ú", r"{\\'U}"), ("Û", r"{\\^U}"), ("Ü", r'{\\"U}'),
    ("Ý", r"{\\'Y}"), ("Þ", r"{\\TH}"), ("ß", r"{\\ss}"),
    ("à", r"{\\`a}"), ("á", r"{\\'a}"), ("â", r"{\\^a}"), ("ã", r"{\\~a}"),
    ("ä", r'{\\"a}'), ("å", r"{\\aa}"), ("æ", r"{\\ae}"), ("ç", r"{\\c{c}}"),
    ("è", r"{\\`e}"), ("é", r"{\\'e}"), ("ê", r"{\\^e}"), ("ë", r'{\\"e}'),
    ("ì", r"{\\`\\i}"), ("í", r"{\\'\\i}"), ("î", r"{\\^\\i}"), ("ï", r'{\\"\\i}'),
    ("ð", r"{\\dh}"), ("ñ", r"{\\~n}"),
    ("ò", r"{\\`o}"), ("ó", r"{\\'o}"), ("ô", r"{\\^o}"), ("õ", r"{\\~o}"),
    ("ö", r'{\\"o}'), ("ø", r"{\\o}"),
    ("ù", r"{\\`u}"), ("ú", r"{\\'u}"), ("û", r"{\\^u}"), ("ü", r'{\\"u}'),
    ("ý", r"{\\'y}"), ("þ", r"{\\th}"), ("ÿ", r'{\\"y}'),

    # Latin extended-A
    ("Ā", r"{\\=A}"), ("ā", r"{\\=a}"), ("Ă", r"{\\u{A}}"), ("ă", r"{\\u{a}}"),
    ("Ą", r"{\\k{A}}"), ("ą", r"{\\k{a}}"), ("Ć", r"{\\'C}"), ("ć", r"{\\'c}"),
    ("Č", r"{\\v{C}}"), ("č", r"{\\v{c}}"), ("Ď", r"{\\v{D}}"), ("ď", r"{\\v{d}}"),
    ("Đ", r"{\\DJ}"), ("đ", r"{\\dj}"),
    ("Ē", r"{\\=E}"), ("ē", r"{\\=e}"), ("Ė", r"{\\.E}"), ("ė", r"{\\.e}"),
    ("Ę", r"{\\k{E}}"), ("ę", r"{\\k{e}}"), ("Ě", r"{\\v{E}}"), ("ě", r"{\\v{e}}"),
    ("Ğ", r"{\\u{G}}"), ("ğ", r"{\\u{g}}"), ("Ī", r"{\\=I}"), ("ī", r"{\\=\\i}"),
    ("İ", r"{\\.I}"), ("ı", r"{\\i}"),
    ("Ł", r"{\\L}"), ("ł", r"{\\l}"), ("Ń", r"{\\'N}"), ("ń", r"{\\'n}"),
    ("Ň", r"{\\v{N}}"), ("ň", r"{\\v{n}}"),
    ("Ō", r"{\\=O}"), ("ō", r"{\\=o}"), ("Ő", r"{\\H{O}}"), ("ő", r"{\\H{o}}"),
    ("Œ", r"{\\OE}"), ("œ", r"{\\oe}"),
    ("Ř", r"{\\v{R}}"), ("ř", r"{\\v{r}}"), ("Ś", r"{\\'S}"), ("ś", r"{\\'s}"),
    ("Ş", r"{\\c{S}}"), ("ş", r"{\\c{s}}"), ("Š", r"{\\v{S}}"), ("š", r"{\\v{s}}"),
    ("Ţ", r"{\\c{T}}"), ("ţ", r"{\\c{t}}"), ("Ť", r"{\\v{T}}"), ("ť", r"{\\v{t}}"),
    ("Ū", r"{\\=U}"), ("ū", r"{\\=u}"), ("Ů", r"{\\r{U}}"), ("ů", r"{\\r{u}}"),
    ("Ű", r"{\\H{U}}"), ("ű", r"{\\H{u}}"),
    ("Ź", r"{\\'Z}"), ("ź", r"{\\'z}"), ("Ż", r"{\\.Z}"), ("ż", r"{\\.z}"),
    ("Ž", r"{\\v{Z}}"), ("ž", r"{\\v{z}}"),

    # IPA and Greek
    ("ɛ", r"$\\varepsilon$"),
    ("α", r"$\\alpha$"), ("β", r"$\\beta$"), ("γ", r"$\\gamma$"), ("δ", r"$\\delta$"),
    ("ε", r"$\\epsilon$"), ("ζ", r"$\\zeta$"), ("η", r"$\\eta$"), ("θ", r"$\\theta$"),
    ("ι", r"$\\iota$"), ("κ", r"$\\kappa$"), ("λ", r"$\\lambda$"), ("μ", r"$\\mu$"),
    ("ν", r"$\\nu$"), ("ξ", r"$\\xi$"), ("π", r"$\\pi$"), ("ρ", r"$\\rho$"),
    ("σ", r"$\\sigma$"), ("τ", r"$\\tau$"), ("υ", r"$\\upsilon$"), ("φ", r"$\\phi$"),
    ("χ", r"$\\chi$"), ("ψ", r"$\\psi$"), ("ω", r"$\\omega$"),
    ("Γ", r"$\\Gamma$"), ("Δ", r"$\\Delta$"), ("Θ", r"$\\Theta$"), ("Λ", r"$\\Lambda$"),
    ("Ξ", r"$\\Xi$"), ("Π", r"$\\Pi$"), ("Σ", r"$\\Sigma$"), ("Φ", r"$\\Phi$"),
    ("Ψ", r"$\\Psi$"), ("Ω", r"$\\Omega$"),

    # Punctuation (em dash before en dash)
    ("—", "---"), ("–", "--"), ("\u2010", "-"), ("\u2011", "-"),
    ("‘", "`"), ("’", "'"), ("“", "``"), ("”", "''"),
    ("…", r"{\\ldots}"), ("«", r"{\\guillemotleft}"), ("»", r"{\\guillemotright}"),
    ("\u00a0", "~"), ("¡", r"{\\textexclamdown}"), ("¿", r"{\\textquestiondown}"),

    # Symbols
    ("©", r"{\\textcopyright}"), ("®", r"{\\textregistered}"), ("™", r"{\\texttrademark}"),
    ("§", r"{\\S}"), ("¶", r"{\\P}"), ("°", r"{\\textdegree}"), ("±", r"$\\pm$"),
    ("×", r"$\\times$"), ("÷", r"$\\div$"), ("£", r"{\\pounds}"), ("€", r"{\\texteuro}"),
    ("µ", r"$\\mu$"), ("·", r"$\\cdot$"), ("≤", r"$\\leq$"), ("≥", r"$\\geq$"),
    ("≈", r"$\\approx$"), ("∞", r"$\\infty$"), ("→", r"$\\rightarrow$"),
]


def compile_table(table: List[Tuple[str, str]]) -> List[Tuple[Pattern, str]]:
    """Compile the (pattern, replacement) rows, keeping their order."""
    return [(re.compile(pattern), replacement) for pattern, replacement in table]


ESCAPES = compile_table(ESCAPE_TABLE)


def escape_special_characters(text: str) -> str:
    """
    Replace non-ASCII characters with their LaTeX spelling.

    Examples:
        Müller -> M{\\"u}ller
        Gödel–Escher -> G{\\"o}del--Escher
    """
    for pattern, replacement in ESCAPES:
        text = pattern.sub(replacement, text)
    return text
