"""Static lookup tables used to interpret free-text queries.

The tables live in versioned JSON files (``gazetteers.json`` and
``vocabulary.json``) so they can be extended without touching the parser.
They are validated with pydantic on load and cached for the lifetime of the
process.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Iterable

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    ValidationError,
    field_validator,
    model_validator,
)

from .config import get_settings
from .models import ContentType
from .utils import normalize_text

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = 1
DEFAULT_KNOWLEDGE_DIR = Path(__file__).resolve().parent / "data"
GAZETTEER_FILE = "gazetteers.json"
VOCABULARY_FILE = "vocabulary.json"


class KnowledgeBaseError(RuntimeError):
    """Raised when a lookup table is missing, malformed or unsupported."""


def _clean_phrases(values: object) -> object:
    if not isinstance(values, (list, tuple)):
        return values
    seen: set[str] = set()
    cleaned: list[str] = []
    for value in values:
        phrase = normalize_text(str(value))
        if phrase and phrase not in seen:
            seen.add(phrase)
            cleaned.append(phrase)
    return tuple(cleaned)


Phrases = Annotated[tuple[str, ...], BeforeValidator(_clean_phrases)]


class _Table(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    version: int

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: int) -> int:
        if value != SUPPORTED_VERSION:
            raise ValueError(
                f"unsupported table version {value}; expected {SUPPORTED_VERSION}"
            )
        return value


class PhraseGroup(BaseModel):
    """Maps a list of trigger phrases to a single value."""

    model_config = ConfigDict(frozen=True)

    value: str
    phrases: Phrases


class TypedPhraseGroup(PhraseGroup):
    """Phrase group that only applies to one content type."""

    content_type: ContentType


class PeriodGroup(BaseModel):
    """Maps phrases to an inclusive span of years."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    phrases: Phrases

    @model_validator(mode="after")
    def _check_span(self) -> "PeriodGroup":
        if self.start > self.end:
            raise ValueError(f"period {self.start}-{self.end} is inverted")
        return self


class Gazetteers(_Table):
    """Known names recognised verbatim in queries."""

    actors: Phrases = ()
    directors: Phrases = ()
    franchises: Phrases = ()
    titles: Phrases = ()


class Vocabulary(_Table):
    """Keyword tables for every detector in the parser."""

    content_types: tuple[PhraseGroup, ...]
    content_type_ignored: Phrases = ()
    director_phrases: Phrases
    director_title_phrases: Phrases = ()
    franchise_suffixes: Phrases
    decades: tuple[PeriodGroup, ...]
    periods: tuple[PeriodGroup, ...] = ()
    moods: tuple[PhraseGroup, ...]
    actor_phrases: Phrases
    similarity_phrases: Phrases
    similarity_blockers: Phrases = ()
    title_stop_words: Phrases
    genres: tuple[PhraseGroup, ...]
    typed_genres: tuple[TypedPhraseGroup, ...] = ()
    romantic_comedy_phrases: Phrases
    countries: tuple[PhraseGroup, ...]
    keyword_stop_words: Phrases = ()
    function_words: Phrases = ()
    filler_words: Phrases = ()

    @field_validator("content_types")
    @classmethod
    def _check_content_types(
        cls, value: tuple[PhraseGroup, ...]
    ) -> tuple[PhraseGroup, ...]:
        unknown = [group.value for group in value if group.value not in ("movie", "series")]
        if unknown:
            raise ValueError(f"unknown content types: {', '.join(unknown)}")
        return value


def _words(phrases: Iterable[str]) -> set[str]:
    return {word for phrase in phrases for word in phrase.split()}


@dataclass(frozen=True)
class KnowledgeBase:
    """Validated lookup tables plus word sets derived from them."""

    gazetteers: Gazetteers
    vocabulary: Vocabulary
    source: Path | None = None
    mood_words: frozenset[str] = field(init=False)
    vocabulary_words: frozenset[str] = field(init=False)
    stop_words: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        vocab = self.vocabulary
        mood_words = _words(p for group in vocab.moods for p in group.phrases)
        vocabulary_words = _words(
            phrase
            for groups in (
                vocab.content_types,
                vocab.moods,
                vocab.genres,
                vocab.typed_genres,
                vocab.countries,
            )
            for group in groups
            for phrase in group.phrases
        )
        vocabulary_words |= _words(
            phrase
            for periods in (vocab.decades, vocab.periods)
            for period in periods
            for phrase in period.phrases
        )
        vocabulary_words |= _words(vocab.romantic_comedy_phrases)
        stop_words = (
            set(vocab.keyword_stop_words)
            | set(vocab.function_words)
            | set(vocab.title_stop_words)
        )
        object.__setattr__(self, "mood_words", frozenset(mood_words))
        object.__setattr__(self, "vocabulary_words", frozenset(vocabulary_words))
        object.__setattr__(self, "stop_words", frozenset(stop_words))

    def is_filler(self, word: str) -> bool:
        """Return whether ``word`` cannot be part of a person's name."""

        return (
            word in self.vocabulary_words
            or word in self.stop_words
            or word in self.vocabulary.filler_words
        )


def _read_table(path: Path, model: type[_Table]) -> _Table:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise KnowledgeBaseError(f"Lookup table {path} does not exist") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise KnowledgeBaseError(f"Lookup table {path} could not be read: {exc}") from exc
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise KnowledgeBaseError(f"Lookup table {path} is invalid: {exc}") from exc


def load_knowledge(directory: Path | str | None = None) -> KnowledgeBase:
    """Load and validate the lookup tables from ``directory``."""

    base = Path(directory) if directory is not None else DEFAULT_KNOWLEDGE_DIR
    gazetteers = _read_table(base / GAZETTEER_FILE, Gazetteers)
    vocabulary = _read_table(base / VOCABULARY_FILE, Vocabulary)
    knowledge = KnowledgeBase(
        gazetteers=gazetteers,  # type: ignore[arg-type]
        vocabulary=vocabulary,  # type: ignore[arg-type]
        source=base,
    )
    logger.info(
        "Loaded lookup tables from %s (%d actors, %d titles, %d genres)",
        base,
        len(knowledge.gazetteers.actors),
        len(knowledge.gazetteers.titles),
        len(knowledge.vocabulary.genres),
    )
    return knowledge


@lru_cache
def get_knowledge(directory: Path | None = None) -> KnowledgeBase:
    """Return the cached knowledge base for ``directory``.

    ``None`` resolves to ``KNOWLEDGE_DIR`` when configured, otherwise to the
    tables shipped with the package.
    """

    if directory is None:
        directory = get_settings().knowledge_dir
    return load_knowledge(directory)
