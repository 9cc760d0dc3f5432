"""Catalogue of pandoc command-line options and their value kinds."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class OptionKind(str, Enum):
    BOOLEAN = "boolean"
    STRING = "string"
    NUMBER = "number"
    CHOICE = "choice"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class OptionSpec:
    name: str
    kind: OptionKind
    description: str
    choices: frozenset[str] = frozenset()
    flag_only: bool = False
    allow_multiple: bool = False
    resolves_path: bool = False


INPUT_FORMATS = ("markdown", "commonmark", "docx", "csv", "html", "json", "latex", "odt")
OUTPUT_FORMATS = (
    "asciidoc",
    "beamer",
    "commonmark_x",
    "docx",
    "epub",
    "html",
    "pdf",
    "json",
    "latex",
    "odt",
    "pptx",
    "revealjs",
    "rtf",
    "docuwiki",
    "mediawiki",
)
PDF_ENGINES = (
    "pdflatex",
    "lualatex",
    "xelatex",
    "wkhtmltopdf",
    "weasyprint",
    "pagedjs-cli",
    "prince",
    "context",
    "pdfroff",
)


def _boolean(name: str, description: str, *, flag_only: bool = False) -> OptionSpec:
    return OptionSpec(name, OptionKind.BOOLEAN, description, flag_only=flag_only)


def _flag(name: str, description: str) -> OptionSpec:
    return _boolean(name, description, flag_only=True)


def _string(name: str, description: str, *, multiple: bool = False, resolves_path: bool = False) -> OptionSpec:
    return OptionSpec(
        name,
        OptionKind.STRING,
        description,
        allow_multiple=multiple,
        resolves_path=resolves_path,
    )


def _number(name: str, description: str) -> OptionSpec:
    return OptionSpec(name, OptionKind.NUMBER, description)


def _choice(name: str, description: str, choices: tuple[str, ...]) -> OptionSpec:
    return OptionSpec(name, OptionKind.CHOICE, description, choices=frozenset(choices))


def _file(name: str, description: str, *, multiple: bool = False) -> OptionSpec:
    return OptionSpec(
        name,
        OptionKind.FILE,
        description,
        allow_multiple=multiple,
        resolves_path=True,
    )


_SPECS: tuple[OptionSpec, ...] = (
    # Formats
    _choice("from", "Specify input format", INPUT_FORMATS),
    _choice("read", "Specify input format (alias for from)", INPUT_FORMATS),
    _choice("to", "Specify output format", OUTPUT_FORMATS),
    _choice("write", "Specify output format (alias for to)", OUTPUT_FORMATS),
    _file("output", "Write output to FILE"),
    # General
    _file("data-dir", "Specify the user data directory"),
    _string("metadata", "Set the metadata field KEY to the value VAL", multiple=True),
    _file("metadata-file", "Read metadata from YAML/JSON file", multiple=True),
    _file("defaults", "Read default options from FILE"),
    _boolean("file-scope", "Parse each file individually before combining"),
    _boolean("sandbox", "Run pandoc in a sandbox"),
    _boolean("standalone", "Produce output with an appropriate header and footer"),
    _file("template", "Use FILE as a custom template"),
    _string("variable", "Set template variable KEY to VAL", multiple=True),
    _string("variable-json", "Set template variable KEY to JSON value", multiple=True),
    _choice("wrap", "Determine how text is wrapped", ("auto", "none", "preserve")),
    _boolean("ascii", "Use only ASCII characters in output"),
    # Table of contents and lists
    _flag("toc", "Include table of contents"),
    _flag("table-of-contents", "Include table of contents (alias for toc)"),
    _number("toc-depth", "Specify the number of section levels to include in TOC"),
    _flag("lof", "Include list of figures"),
    _flag("list-of-figures", "Include list of figures (alias for lof)"),
    _flag("lot", "Include list of tables"),
    _flag("list-of-tables", "Include list of tables (alias for lot)"),
    # Numbering
    _flag("number-sections", "Number section headings"),
    _string("number-offset", "Offset for section numbering"),
    _choice("top-level-division", "Treat top-level headers as", ("section", "chapter", "part")),
    # Resources
    _file("extract-media", "Extract images and other media to directory"),
    _string("resource-path", "List of paths to search for images and other resources", multiple=True),
    _file("include-in-header", "Include contents of FILE in header", multiple=True),
    _file("include-before-body", "Include contents of FILE before body", multiple=True),
    _file("include-after-body", "Include contents of FILE after body", multiple=True),
    # Syntax highlighting
    _flag("no-highlight", "Disable syntax highlighting"),
    _string("highlight-style", "Specify the coloring style for highlighted source code"),
    _file("syntax-definition", "Load a KDE XML syntax definition file", multiple=True),
    # Text processing
    _number("dpi", "Specify the default dpi for images"),
    _choice("eol", "Manually specify line endings", ("crlf", "lf", "native")),
    _number("columns", "Length of lines in characters"),
    _boolean("preserve-tabs", "Preserve tabs instead of converting to spaces"),
    _number("tab-stop", "Specify the number of spaces per tab"),
    # PDF
    _choice("pdf-engine", "Use the specified engine when producing PDF output", PDF_ENGINES),
    _string("pdf-engine-opt", "Give option to the PDF-engine", multiple=True),
    # Reference documents and embedding
    _file("reference-doc", "Use FILE as a style reference"),
    _file("reference-odt", "Use FILE as an ODT style reference"),
    _file("reference-docx", "Use FILE as a DOCX style reference"),
    _boolean("self-contained", "Produce a standalone HTML file with no external dependencies"),
    _boolean("embed-resources", "Embed resources in the output file"),
    _boolean("link-images", "Link to images instead of embedding them"),
    _string("request-header", "Set request header when fetching remote files", multiple=True),
    _boolean("no-check-certificate", "Disable SSL certificate verification"),
    # Citations
    _flag("citeproc", "Process citations with citeproc"),
    _file("bibliography", "Set the bibliography field in metadata", multiple=True),
    _file("csl", "Set the csl field in metadata"),
    _file("citation-abbreviations", "Set the citation-abbreviations field in metadata"),
    _flag("natbib", "Use natbib for citations in LaTeX output"),
    _flag("biblatex", "Use BibLaTeX for citations in LaTeX output"),
    # Math
    _flag("mathml", "Render TeX math using MathML"),
    _string("webtex", "Render TeX math using the WebTeX service"),
    _string("mathjax", "Render TeX math using MathJax"),
    _string("katex", "Render TeX math using KaTeX"),
    _flag("gladtex", "Render TeX math using GladTeX"),
    # Processing
    _file("abbreviations", "Specifies a custom abbreviations file"),
    _string("indented-code-classes", "Classes to use for indented code blocks"),
    _string(
        "default-image-extension",
        "Specify a default extension to use when image paths/URLs have no extension",
    ),
    _string("filter", "Specify an executable to be used as a filter", multiple=True, resolves_path=True),
    _file("lua-filter", "Transform the document using pandoc-lua-filter", multiple=True),
    _number("shift-heading-level-by", "Shift heading levels by a positive or negative integer"),
    _number("base-header-level", "Specify the base level for headers"),
    _choice("track-changes", "Specifies what to do with tracked changes", ("accept", "reject", "all")),
    _boolean("strip-comments", "Strip out HTML comments"),
    _boolean("reference-links", "Use reference-style links"),
    _choice("reference-location", "Specify where footnotes should be placed", ("block", "section", "document")),
    # HTML and EPUB
    _file("css", "Link to a CSS style sheet", multiple=True),
    _string("epub-subdirectory", "Specify subdirectory that will hold the EPUB"),
    _file("epub-cover-image", "Use the specified image as the EPUB cover"),
    _file("epub-stylesheet", "Use the specified CSS file to style the EPUB"),
    _boolean("epub-title-page", "Add title page to EPUB"),
    _file("epub-metadata", "Look in the specified XML file for metadata for the EPUB"),
    _file("epub-embed-font", "Embed the specified font in the EPUB", multiple=True),
    _number("split-level", "Specify the heading level at which to split the EPUB"),
    _file("chunk-template", "Path template for new chunks"),
    _number("epub-chapter-level", "Specify the heading level at which to split the EPUB into chapters"),
    _choice("ipynb-output", "Determine how jupyter notebook outputs are treated", ("all", "none", "best")),
    # Slides
    _number("slide-level", "Specifies that headers with the specified level create slides"),
    _boolean("section-divs", "Wrap sections in <section> tags"),
    _boolean("html-q-tags", "Use <q> tags for quotes in HTML"),
    _choice(
        "email-obfuscation",
        "Specify a method for obfuscating mailto links",
        ("none", "javascript", "references"),
    ),
    _string("id-prefix", "Specify a prefix to be added to all identifiers"),
    _string("title-prefix", "Specify a prefix to be added to all CSS selectors"),
    _boolean("listings", "Use the listings package for LaTeX code blocks"),
    _boolean("incremental", "Make list items in slide shows display incrementally"),
    # Document structure
    _choice("figure-caption-position", "Determines where figure captions are placed", ("above", "below")),
    _choice("table-caption-position", "Determines where table captions are placed", ("above", "below")),
    _choice(
        "markdown-headings",
        "Specifies whether to use ATX or Setext-style headings",
        ("setext", "atx"),
    ),
    _boolean("list-tables", "Render tables as list tables"),
    # Debugging and logging
    _boolean("trace", "Print debug information"),
    _boolean("dump-args", "Print information about command-line arguments"),
    _boolean("ignore-args", "Ignore command-line arguments"),
    _flag("verbose", "Give verbose debugging output"),
    _flag("quiet", "Suppress warning messages"),
    _boolean("fail-if-warnings", "Exit with error status if there are any warnings"),
    _file("log", "Write log messages in machine-readable JSON format to FILE"),
    # Informational
    _flag("version", "Print version"),
    _flag("help", "Show help"),
    _flag("list-input-formats", "List supported input formats"),
    _flag("list-output-formats", "List supported output formats"),
    _string("list-extensions", "List supported extensions for FORMAT"),
    _flag("list-highlight-languages", "List supported languages for syntax highlighting"),
    _flag("list-highlight-styles", "List supported styles for syntax highlighting"),
    _string("print-default-template", "Print the system default template for an output FORMAT"),
    _file("print-default-data-file", "Print a system default data file"),
    _string("print-highlight-style", "Print a JSON version of a highlighting style"),
    _flag("bash-completion", "Generate a bash completion script"),
)

PANDOC_OPTIONS: Mapping[str, OptionSpec] = MappingProxyType({spec.name: spec for spec in _SPECS})

FILE_PATH_OPTIONS: frozenset[str] = frozenset(
    name for name, spec in PANDOC_OPTIONS.items() if spec.resolves_path
)


def get_option(name: str) -> OptionSpec | None:
    return PANDOC_OPTIONS.get(name)


def resolves_path(name: str) -> bool:
    return name in FILE_PATH_OPTIONS


def is_flag_only(name: str) -> bool:
    spec = PANDOC_OPTIONS.get(name)
    return spec is not None and spec.flag_only


def iter_options(kind: OptionKind | None = None) -> list[OptionSpec]:
    specs = sorted(PANDOC_OPTIONS.values(), key=lambda spec: spec.name)
    if kind is None:
        return specs
    return [spec for spec in specs if spec.kind is kind]


__all__ = [
    "FILE_PATH_OPTIONS",
    "INPUT_FORMATS",
    "OUTPUT_FORMATS",
    "OptionKind",
    "OptionSpec",
    "PANDOC_OPTIONS",
    "PDF_ENGINES",
    "get_option",
    "is_flag_only",
    "iter_options",
    "resolves_path",
]
