"""Turns the free text of a completion into dish drafts.

The model is asked to answer with an outline (see `chef.prompts`). It mostly does.
The reply is cut into one segment per dish boundary, then each segment is scanned
for the four field labels in order. Parsing is best effort: a field label quoted
inside another field will split that field in the wrong place.
"""

import logging
import re
from typing import Iterator, Protocol

from chef.models import DishDraft


logger = logging.getLogger(__name__)


def _label(words: str) -> str:
    # Tolerates markdown emphasis, e.g. "**Ingredients:**".
    words_re = r"\s+".join(words.split())
    return rf"[*_]*{words_re}[*_]*[ \t]*:[*_]*[ \t]*"


NUMBER_LABEL = _label("number of the dish")
NAME_LABEL = _label("name of the dish")
INGREDIENTS_LABEL = _label("ingredients")
PREPARATION_LABEL = _label("preparation method")
CALORIES_LABEL = _label("estimated calories")

# "Dish 2:", "dish2", "### Dish 3" at the start of a line.
DISH_N_MARKER = r"^[ \t#*_-]*dish[ \t]*(?P<dish_no>\d+)\b[*_]*[ \t]*[:.)]?"


BOUNDARY_PATTERN = re.compile(
    rf"{NUMBER_LABEL}(?P<ordinal>[^\n]*?)(?=[ \t]*(?:\n|\Z|{NAME_LABEL}))"
    rf"|{DISH_N_MARKER}",
    re.IGNORECASE | re.MULTILINE,
)


FIELDS = ("name", "ingredients", "preparation", "calories")

LABEL_PATTERN = re.compile(
    rf"(?P<name>{NAME_LABEL})"
    rf"|(?P<ingredients>{INGREDIENTS_LABEL})"
    rf"|(?P<preparation>{PREPARATION_LABEL})"
    rf"|(?P<calories>{CALORIES_LABEL})",
    re.IGNORECASE,
)


class DishExtractor(Protocol):
    def extract(self, text: str) -> list[DishDraft]:
        ...


def first_line(text: str) -> str:
    return next((line.strip() for line in text.splitlines() if line.strip()), "")


class PatternExtractor:
    def __init__(
        self,
        boundary: re.Pattern[str] = BOUNDARY_PATTERN,
        labels: re.Pattern[str] = LABEL_PATTERN,
    ) -> None:
        self.boundary = boundary
        self.labels = labels

    def segments(self, text: str) -> Iterator[tuple[str | None, str]]:
        """(ordinal, text up to the next boundary) for every dish boundary."""
        boundaries = list(self.boundary.finditer(text))
        for match, following in zip(boundaries, boundaries[1:] + [None]):
            end = len(text) if following is None else following.start()
            ordinal = (match.group("ordinal") or match.group("dish_no") or "").strip(
                " \t*_"
            )
            yield ordinal or None, text[match.end() : end]

    def fields(self, segment: str) -> dict[str, str] | None:
        """Field values of one segment, `None` if a label is missing."""
        labels = self.labels.finditer(segment)
        found: list[re.Match[str]] = []
        for wanted in FIELDS:
            match = next((m for m in labels if m.lastgroup == wanted), None)
            if match is None:
                return None
            found.append(match)

        values: dict[str, str] = {}
        for field, match, following in zip(FIELDS, found, found[1:] + [None]):
            end = len(segment) if following is None else following.start()
            values[field] = segment[match.end() : end].strip()
        # Calories is one line; anything after it is chatter.
        values["calories"] = first_line(values["calories"])
        return values

    def extract(self, text: str) -> list[DishDraft]:
        drafts: list[DishDraft] = []
        for ordinal, segment in self.segments(text):
            values = self.fields(segment)
            if values is None:
                logger.debug("Skipping incomplete dish %r", ordinal)
                continue
            if not values["name"]:
                logger.debug("Skipping dish without a name %r", ordinal)
                continue
            drafts.append(
                DishDraft(
                    ordinal=ordinal,
                    name=values["name"],
                    raw_ingredients=values["ingredients"],
                    preparation=values["preparation"],
                    calories_text=values["calories"],
                )
            )
        logger.info("Extracted %d dish(es)", len(drafts))
        return drafts


def extract(text: str) -> list[DishDraft]:
    return PatternExtractor().extract(text)
