"""
Batch property updates on a selection of profiles.

Expressions:
    layer_height=0.25       set a value
    fill_density==+5%       add to the current value
    perimeters==-1          subtract from the current value
"""

import logging
import re

from pydantic import BaseModel

from .codec import read_document, write_document
from .corpus import group_by_file
from .models import Profile, UpdateReport
from .values import RelativeAdjustment, ValueParseError, parse_adjustment, parse_measurement

logger = logging.getLogger(__name__)

_RELATIVE_RE = re.compile(r"^(?P<key>\w+)==(?P<delta>[+-].*)$")
_ABSOLUTE_RE = re.compile(r"^(?P<key>\w+)=(?P<value>.+)$")


class UpdateExpression(BaseModel):
    """One parsed update: an absolute ``value`` or a relative ``adjustment``."""

    key: str
    value: str | None = None
    adjustment: RelativeAdjustment | None = None

    @property
    def is_relative(self) -> bool:
        return self.adjustment is not None

    def apply(self, current: str | None) -> str:
        """New value for a property currently set to ``current``.

        Raises ``ValueParseError`` when a relative update cannot be applied.
        """
        if self.adjustment is None:
            return self.value or ""
        if current is None:
            raise ValueParseError(f"Property {self.key!r} is not set")
        return self.adjustment.apply(parse_measurement(current)).format()


def parse_update_expression(text: str) -> UpdateExpression:
    """Parse ``key=value`` or ``key==+N[unit]``; raises ``ValueParseError``."""
    text = text.strip()
    match = _RELATIVE_RE.match(text)
    if match:
        return UpdateExpression(
            key=match.group("key"), adjustment=parse_adjustment(match.group("delta"))
        )
    match = _ABSOLUTE_RE.match(text)
    if match:
        return UpdateExpression(key=match.group("key"), value=match.group("value").strip())
    raise ValueParseError(
        f"Invalid update expression: {text!r} (use property=value or property==+/-amount)"
    )


def _apply_to_profile(profile: Profile, expressions: list[UpdateExpression], report: UpdateReport) -> bool:
    changed = False
    for expr in expressions:
        current = profile.properties.get(expr.key)
        if expr.is_relative and current is None:
            logger.warning(
                "Property %r not found in %s, skipping relative update",
                expr.key, profile.qualified_name,
            )
            report.skipped.append(f"{profile.qualified_name}: {expr.key}")
            continue
        try:
            new_value = expr.apply(current)
        except ValueParseError as e:
            logger.warning(
                "Could not update %s in %s: %s", expr.key, profile.qualified_name, e
            )
            report.skipped.append(f"{profile.qualified_name}: {expr.key}")
            continue

        profile.properties[expr.key] = new_value
        report.changes.setdefault(profile.qualified_name, {})[expr.key] = (current, new_value)
        logger.debug(
            "%s: %s = %s -> %s", profile.qualified_name, expr.key, current or "(not set)", new_value
        )
        changed = True
    return changed


def apply_updates(
    selection: list[Profile],
    expressions: list[UpdateExpression | str],
) -> UpdateReport:
    """
    Apply update expressions to every selected profile and rewrite their files.

    Each file is read and written once.  Properties that cannot be updated
    are logged and skipped.

    Raises:
        ValueParseError: If an expression string is malformed.
    """
    parsed = [e if isinstance(e, UpdateExpression) else parse_update_expression(e) for e in expressions]
    report = UpdateReport()

    for path, profiles in group_by_file(selection).items():
        doc = read_document(path, profiles[0].profile_type)
        if doc is None:
            continue
        selected = {p.qualified_name for p in profiles}
        changed = False
        for profile in doc.profiles():
            if profile.qualified_name in selected and _apply_to_profile(profile, parsed, report):
                changed = True
        if not changed:
            continue
        try:
            write_document(doc)
        except OSError as e:
            logger.warning("Could not write %s: %s", path, e)
            continue
        report.files_updated.append(path)
        logger.info("Updated %s", path.name)

    return report
