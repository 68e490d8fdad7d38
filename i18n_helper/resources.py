"""
Android string resources: parsing, reading, writing and appending.

A strings.xml document looks like:

    <resources>
        <string name="hello">Hello</string>
        <string name="app_id" translatable="false">com.example</string>
    </resources>

Parsing keeps each <string> body as raw inner markup (inline tags, entities
and backslash escapes untouched), so values can be sent to the model and
written back without a round trip through an XML serializer.

New entries are spliced in as text right before </resources> instead of
re-serializing the tree. Everything else in the file stays byte-for-byte the
same, which keeps diffs limited to the appended lines.
"""

import logging
import re
import shutil
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping
from xml.sax.saxutils import escape

from .errors import InvalidDocumentShape, MalformedDocument

logger = logging.getLogger(__name__)

CLOSING_MARKER = '</resources>'
ENTRY_INDENT = '    '
NON_TRANSLATABLE_VALUES = ('false', '0')

_COMMENT_RE = re.compile(r'<!--.*?-->', re.DOTALL)
# <string ...>body</string> or <string .../>; the lookahead keeps <string-array> out
_STRING_TAG_RE = re.compile(
    r'''<string(?=[\s/>])(?:[^>"']|"[^"]*"|'[^']*')*?(?:/>|>(?P<body>.*?)</string\s*>)''',
    re.DOTALL,
)
_UNESCAPED_QUOTE_RE = re.compile(r"(?<!\\)'")
# & that does not start a character or entity reference
_BARE_AMPERSAND_RE = re.compile(r'&(?!(?:[A-Za-z_][\w.-]*|#[0-9]+|#x[0-9A-Fa-f]+);)')


@dataclass
class LocaleResource:
    """One strings.xml file of one locale."""
    locale: str
    file_path: Path
    raw_content: str
    entries: Dict[str, str] = field(default_factory=dict)

    @property
    def is_baseline(self) -> bool:
        return self.locale == 'default'

    @classmethod
    def load(cls, locale: str, file_path: Path) -> 'LocaleResource':
        """Read and parse a resource file."""
        raw_content = read_file(file_path)
        return cls(
            locale=locale,
            file_path=file_path,
            raw_content=raw_content,
            entries=parse_strings_xml(raw_content),
        )

    def insert_entries(self, new_entries: Mapping[str, str], backup: bool = False) -> int:
        """Append new entries to the file on disk and refresh this object.

        Returns the number of entries written.

        Raises:
            MalformedDocument: if the updated document would not parse; the
                file is left untouched
        """
        if not new_entries:
            return 0

        updated = append_entries(self.raw_content, new_entries)
        # Refuse to write anything that would not parse back
        entries = parse_strings_xml(updated)

        if backup and self.file_path.exists():
            timestamp = time.strftime('%Y%m%d-%H%M%S')
            backup_path = self.file_path.with_suffix(f'.backup-{timestamp}.xml')
            shutil.copy(self.file_path, backup_path)
            logger.info('[%s] Backup created: %s', self.locale, backup_path)

        write_file(self.file_path, updated)
        self.raw_content = updated
        self.entries = entries
        return len(new_entries)


def parse_strings_xml(text: str) -> Dict[str, str]:
    """
    Parse a strings.xml document into an ordered name -> text mapping.

    Only direct children of the root are read. Skips <string> elements
    marked translatable="false", and ones with an empty name or a blank
    body. When a name appears twice, the later value wins and the key keeps
    the position of its first occurrence.

    Attributes come from the parsed tree; the regex only slices out the raw
    bodies. Both walk <string> elements in document order, so they pair up.

    Raises:
        MalformedDocument: if the text is not well-formed XML with a root element
    """
    text = text.lstrip('\ufeff')
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise MalformedDocument(f'Not a valid resource document: {e}') from e

    elements = [element for element in root.iter('string') if element is not root]
    matches = list(_STRING_TAG_RE.finditer(_COMMENT_RE.sub('', text)))
    if len(elements) != len(matches):
        raise MalformedDocument(
            f'Found {len(elements)} <string> elements but could only locate {len(matches)} of them'
        )

    top_level = {id(child) for child in root}
    entries: Dict[str, str] = {}
    for element, match in zip(elements, matches):
        if id(element) not in top_level:
            continue

        translatable = element.get('translatable')
        if translatable is not None and translatable.strip().lower() in NON_TRANSLATABLE_VALUES:
            continue

        name = element.get('name', '').strip()
        body = (match.group('body') or '').strip()
        if not name or not body:
            continue

        if name in entries:
            logger.debug('Duplicate string name %r, keeping the later value', name)
        entries[name] = body

    return entries


def read_file(path: Path) -> str:
    """Read a resource file as UTF-8, keeping its line endings."""
    with open(path, 'r', encoding='utf-8', newline='') as f:
        return f.read()


def write_file(path: Path, text: str) -> None:
    """Overwrite a resource file with UTF-8 text."""
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(text)


def escape_value(text: str) -> str:
    """Escape apostrophes that aapt would otherwise reject, and bare ampersands.

    Entity references and inline markup are left as they are.
    """
    text = _BARE_AMPERSAND_RE.sub('&amp;', text)
    return _UNESCAPED_QUOTE_RE.sub(r"\\'", text)


def render_entry(name: str, value: str) -> str:
    name = escape(name, {'"': '&quot;'})
    return f'{ENTRY_INDENT}<string name="{name}">{escape_value(value)}</string>'


def append_entries(text: str, new_entries: Mapping[str, str]) -> str:
    """
    Insert one <string> line per entry right before the closing </resources>.

    Entries are written in the mapping's iteration order. Nothing else in
    the document changes.

    Raises:
        InvalidDocumentShape: if the document has no closing marker
    """
    index = text.rfind(CLOSING_MARKER)
    if index == -1:
        raise InvalidDocumentShape(f'Document has no {CLOSING_MARKER} closing tag')

    if not new_entries:
        return text

    block = '\n'.join(render_entry(name, value) for name, value in new_entries.items())
    return f'{text[:index]}{block}\n{text[index:]}'
