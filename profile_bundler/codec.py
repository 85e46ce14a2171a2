"""
Stanza codec for slicer INI profile files.

Reads ``[print: Name]`` / ``[filament: Name]`` stanzas into ``Profile`` records
and writes them back.  Everything the engine does not understand (the
``[vendor]`` stanza of bundle files, ``[printer:...]`` sections, leading
comments) is kept and re-emitted so a rewrite only changes what was edited.

Output conventions:
- properties are always written in ascending key order;
- comment lines are kept, blank lines are normalized;
- privatized headers have no space after the colon (``[print:*Name*]``);
- profiles are separated by exactly one blank line.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Union

from .models import Profile, ProfileType

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(r"^\[(?P<body>[^\]]+)\]$")
_PROFILE_HEADER_RE = re.compile(r"^(?P<type>\w+):\s*(?P<name>.*?)\s*$")
_PROPERTY_RE = re.compile(r"^(?P<key>\w+)\s*=\s*(?P<value>.*)$")
_INLINE_COMMENT_RE = re.compile(r"\s#")
_HEX_COLOUR_RE = re.compile(r"#(?:[0-9A-Fa-f]{3}){1,2}(?![0-9A-Za-z])")

_PROFILE_TYPES = {pt.value: pt for pt in ProfileType}


def strip_comment(line: str) -> str:
    """
    Return a line's content with its comment removed.

    A ``#`` starts a comment at the beginning of a line, or after whitespace
    once a value has started.  A value that is a hex colour
    (``filament_colour = #29B2B2``) is kept; ``key = # note`` has an empty value.
    """
    text = line.strip()
    if text.startswith("#"):
        return ""
    for match in _INLINE_COMMENT_RE.finditer(text):
        head = text[: match.start()].rstrip()
        if head.endswith("=") and _HEX_COLOUR_RE.match(text, match.start() + 1):
            continue
        return head
    return text


def format_header(profile: Profile) -> str:
    if "*" in profile.name:
        return f"[{profile.profile_type.value}:{profile.name}]"
    return f"[{profile.profile_type.value}: {profile.name}]"


@dataclass
class ForeignSection:
    """A stanza the engine does not model, kept verbatim (e.g. ``[vendor]``)."""

    header: str
    lines: list[str] = field(default_factory=list)  # header line first

    def render(self) -> list[str]:
        lines = [line.rstrip() for line in self.lines]
        while lines and not lines[-1].strip():
            lines.pop()
        return lines


Block = Union[Profile, ForeignSection]


@dataclass
class ProfileDocument:
    """Ordered content of one profile file."""

    profile_type: ProfileType
    default_name: str
    path: Path | None = None
    preamble: list[str] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)

    def profiles(self, profile_type: ProfileType | None = None) -> list[Profile]:
        wanted = profile_type or self.profile_type
        return [
            b for b in self.blocks
            if isinstance(b, Profile) and b.profile_type == wanted
        ]

    def sections(self) -> list[ForeignSection]:
        return [b for b in self.blocks if isinstance(b, ForeignSection)]

    def section(self, header: str) -> ForeignSection | None:
        for s in self.sections():
            if s.header == header:
                return s
        return None

    def find(self, qualified_name: str) -> Profile | None:
        for b in self.blocks:
            if isinstance(b, Profile) and b.qualified_name == qualified_name:
                return b
        return None

    def append(self, profile: Profile) -> None:
        self.blocks.append(profile)

    def replace(self, profile: Profile) -> bool:
        """Swap in ``profile`` for the block with the same qualified name."""
        for i, b in enumerate(self.blocks):
            if isinstance(b, Profile) and b.qualified_name == profile.qualified_name:
                self.blocks[i] = profile
                return True
        return False

    def remove(self, qualified_names: Iterable[str]) -> list[Profile]:
        names = set(qualified_names)
        removed = [
            b for b in self.blocks
            if isinstance(b, Profile) and b.qualified_name in names
        ]
        self.blocks = [b for b in self.blocks if not any(b is r for r in removed)]
        return removed

    def is_empty(self) -> bool:
        """True when nothing but an empty default profile (or nothing) is left."""
        for b in self.blocks:
            if isinstance(b, ForeignSection):
                return False
            if not _is_empty_default(b, self.default_name):
                return False
        return True


def _is_empty_default(profile: Profile, default_name: str) -> bool:
    return profile.name == default_name and not profile.properties and not profile.comments


def _parse_header(clean_line: str) -> tuple[ProfileType | None, str] | None:
    """Return (profile_type, name) for a header line, or None for other lines.

    Headers of types the engine does not model come back with a None type.
    """
    match = _HEADER_RE.match(clean_line)
    if not match:
        return None
    body = match.group("body").strip()
    profile_match = _PROFILE_HEADER_RE.match(body)
    if profile_match and profile_match.group("type") in _PROFILE_TYPES:
        return _PROFILE_TYPES[profile_match.group("type")], profile_match.group("name")
    return None, body


def parse_document(
    text: str,
    profile_type: ProfileType,
    default_name: str,
    source_path: Path | None = None,
) -> ProfileDocument:
    """
    Parse profile file content into a ``ProfileDocument``.

    Content before the first header becomes an implicit profile named
    ``default_name`` when it holds properties; leading comments alone are
    kept as a preamble.  An empty file yields one empty default profile.
    """
    doc = ProfileDocument(profile_type=profile_type, default_name=default_name, path=source_path)
    leading: list[str] = []
    current: Block | None = None

    def flush_leading() -> None:
        if any(_PROPERTY_RE.match(strip_comment(line)) for line in leading):
            implicit = Profile(
                profile_type=profile_type,
                name=default_name,
                source_path=source_path,
                implicit=True,
            )
            for line in leading:
                _add_profile_line(implicit, line)
            doc.blocks.append(implicit)
        else:
            doc.preamble = [line.rstrip() for line in leading if "#" in line]
        leading.clear()

    started = False
    for line in text.splitlines():
        clean_line = strip_comment(line)
        header = _parse_header(clean_line)

        if header is not None:
            if not started:
                flush_leading()
                started = True
            header_type, name = header
            if header_type is None:
                current = ForeignSection(header=name, lines=[line])
            else:
                current = Profile(
                    profile_type=header_type,
                    name=name,
                    raw_lines=[line],
                    source_path=source_path,
                )
            doc.blocks.append(current)
            continue

        if not started:
            leading.append(line)
        elif isinstance(current, ForeignSection):
            current.lines.append(line)
        elif current is not None:
            _add_profile_line(current, line)

    if not started:
        flush_leading()

    if not doc.blocks:
        doc.blocks.append(
            Profile(
                profile_type=profile_type,
                name=default_name,
                source_path=source_path,
                implicit=True,
            )
        )
    return doc


def _add_profile_line(profile: Profile, line: str) -> None:
    clean_line = strip_comment(line)
    match = _PROPERTY_RE.match(clean_line)
    if match:
        profile.properties[match.group("key")] = match.group("value").strip()
    elif line.strip() and "#" in line:
        profile.comments.append(line.rstrip())
    profile.raw_lines.append(line)


def parse_profiles(
    text: str,
    profile_type: ProfileType,
    default_name: str,
    source_path: Path | None = None,
) -> list[Profile]:
    """Parse file content and return the profiles of ``profile_type`` in file order."""
    return parse_document(text, profile_type, default_name, source_path).profiles()


def _comment_lines(profile: Profile) -> list[str]:
    if not profile.raw_lines:
        return list(profile.comments)
    lines = []
    for line in profile.raw_lines:
        if not line.strip() or "#" not in line:
            continue
        clean_line = strip_comment(line)
        if _PROPERTY_RE.match(clean_line) or _HEADER_RE.match(clean_line):
            continue
        lines.append(line.rstrip())
    return lines


def render_profile(profile: Profile, with_header: bool = True) -> list[str]:
    lines = [format_header(profile)] if with_header else []
    lines.extend(_comment_lines(profile))
    for key, value in profile.sorted_properties().items():
        lines.append(f"{key} = {value}".rstrip())
    return lines


def render_document(doc: ProfileDocument) -> str:
    profiles = [b for b in doc.blocks if isinstance(b, Profile)]
    only_default = len(profiles) == 1 and _is_empty_default(profiles[0], doc.default_name)

    chunks: list[list[str]] = []
    if doc.preamble:
        chunks.append(list(doc.preamble))
    for block in doc.blocks:
        if isinstance(block, ForeignSection):
            lines = block.render()
        else:
            lines = render_profile(block, with_header=not (only_default and block is profiles[0]))
        if lines:
            chunks.append(lines)

    if not chunks:
        return ""
    return "\n\n".join("\n".join(chunk) for chunk in chunks) + "\n"


def render_profiles(profiles: list[Profile], default_name: str) -> str:
    """Render a plain profile sequence as file content."""
    if not profiles:
        return ""
    doc = ProfileDocument(profile_type=profiles[0].profile_type, default_name=default_name)
    doc.blocks.extend(profiles)
    return render_document(doc)


# --- File I/O ---


def read_document(
    path: Path,
    profile_type: ProfileType,
    default_name: str | None = None,
) -> ProfileDocument | None:
    """Read and parse a profile file; returns None (and logs) if it cannot be read."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read profile file %s: %s", path, e)
        return None
    return parse_document(text, profile_type, default_name or path.stem, source_path=path)


def load_profiles(path: Path, profile_type: ProfileType) -> list[Profile]:
    """Profiles of ``profile_type`` in ``path``; empty when the file cannot be read."""
    doc = read_document(path, profile_type)
    if doc is None:
        return []
    return doc.profiles()


def write_document(doc: ProfileDocument, path: Path | None = None) -> Path:
    """Replace the file's content with the rendered document."""
    target = path or doc.path
    if target is None:
        raise ValueError("Document has no path to write to")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_document(doc), encoding="utf-8")
    logger.debug("Wrote %s", target)
    return target


def write_profiles(path: Path, profiles: list[Profile], default_name: str | None = None) -> Path:
    """Replace the file's content with ``profiles``, in the given order."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_profiles(profiles, default_name or path.stem), encoding="utf-8")
    logger.debug("Wrote %d profile(s) to %s", len(profiles), path)
    return path
