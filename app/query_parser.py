"""Deterministic free-text query parser.

Parsing runs an ordered chain of detectors over the normalised query. Each
detector fills one or more fields of the :class:`SearchIntent` and returns
``True`` when the remaining detectors should be skipped.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterator

from .intent import ROMANTIC_COMEDY_GENRES, SearchIntent, YearRange
from .knowledge import KnowledgeBase, get_knowledge
from .utils import contains_phrase, find_phrase, normalize_text, phrase_pattern

logger = logging.getLogger(__name__)

Detector = Callable[[str, SearchIntent, KnowledgeBase], bool]

YEAR_RE = re.compile(r"(?<!\d)(19[5-9]\d|20[0-2]\d)(?!\d)")
WORD_RE = re.compile(r"[a-z]+(?:['-][a-z]+)*")
TRAILING_PUNCTUATION = ".,!?;:\"()[]"
MAX_NAME_WORDS = 3
MAX_FRANCHISE_WORDS = 2


def _leading_words(
    fragment: str,
    knowledge: KnowledgeBase,
    *,
    limit: int,
) -> list[str]:
    """Collect the name-like words at the start of ``fragment``."""

    words: list[str] = []
    for raw in fragment.split():
        word = raw.strip(TRAILING_PUNCTUATION)
        if not word or not WORD_RE.fullmatch(word):
            break
        if knowledge.is_filler(word):
            break
        words.append(word)
        if len(words) == limit or raw[-1] in TRAILING_PUNCTUATION:
            break
    return words


def _previous_word(text: str, index: int) -> str:
    before = text[:index].split()
    return before[-1].strip(TRAILING_PUNCTUATION) if before else ""


def _similarity_matches(
    text: str, knowledge: KnowledgeBase
) -> Iterator[re.Match[str]]:
    """Yield similarity phrase matches in table order."""

    vocab = knowledge.vocabulary
    for phrase in vocab.similarity_phrases:
        for match in phrase_pattern(phrase).finditer(text):
            if (
                phrase == "like"
                and _previous_word(text, match.start()) in vocab.similarity_blockers
            ):
                continue
            yield match


def _follows_similarity(text: str, index: int, knowledge: KnowledgeBase) -> bool:
    prefix = text[:index].rstrip(" \"'")
    if prefix.endswith(" the") or prefix == "the":
        prefix = prefix[:-3].rstrip()
    return any(
        match.end() == len(prefix) for match in _similarity_matches(text, knowledge)
    )


def _title_at(fragment: str, knowledge: KnowledgeBase) -> str | None:
    """Return the known or free-form title at the start of ``fragment``."""

    tail = fragment.strip().lstrip("\"'")
    known = [
        title for title in knowledge.gazetteers.titles if phrase_pattern(title).match(tail)
    ]
    if known:
        return max(known, key=len)

    stop_words = frozenset(knowledge.vocabulary.title_stop_words)
    words: list[str] = []
    for raw in tail.split():
        word = raw.strip(TRAILING_PUNCTUATION)
        if word in stop_words:
            break
        if word:
            words.append(word)
        if raw[-1] in TRAILING_PUNCTUATION:
            break
    candidate = " ".join(words).strip(TRAILING_PUNCTUATION + "'")
    return candidate if len(candidate) > 2 else None


def detect_content_type(text: str, intent: SearchIntent, knowledge: KnowledgeBase) -> bool:
    vocab = knowledge.vocabulary
    scoped = text
    for phrase in vocab.content_type_ignored:
        scoped = phrase_pattern(phrase).sub(" ", scoped)
    for group in vocab.content_types:
        if any(contains_phrase(scoped, phrase) for phrase in group.phrases):
            intent.content_type = group.value  # type: ignore[assignment]
            logger.debug("Content type hint: %s", group.value)
            break
    return False


def detect_director(text: str, intent: SearchIntent, knowledge: KnowledgeBase) -> bool:
    for name in knowledge.gazetteers.directors:
        if contains_phrase(text, name):
            intent.director_name = name
            logger.debug("Known director: %s", name)
            return True

    vocab = knowledge.vocabulary
    for phrase in vocab.director_phrases:
        match = find_phrase(text, phrase)
        if match is None:
            continue
        words = _leading_words(text[match.end():], knowledge, limit=MAX_NAME_WORDS)
        if words:
            intent.director_name = " ".join(words)
            logger.debug("Director after %r: %s", phrase, intent.director_name)
            return True

    # "from the director of X" names a film, not a person.
    for phrase in vocab.director_title_phrases:
        match = find_phrase(text, phrase)
        if match is None:
            continue
        title = _title_at(text[match.end():], knowledge)
        if title:
            intent.similar_to_title = title
            logger.debug("Title after %r: %s", phrase, title)
            break
    return False


def detect_franchise(text: str, intent: SearchIntent, knowledge: KnowledgeBase) -> bool:
    for name in knowledge.gazetteers.franchises:
        match = find_phrase(text, name)
        if match is None:
            continue
        if intent.similar_to_title and contains_phrase(intent.similar_to_title, name):
            continue
        if _follows_similarity(text, match.start(), knowledge):
            logger.debug("Franchise %s used as a similarity anchor", name)
            continue
        intent.franchise_name = name
        logger.debug("Known franchise: %s", name)
        return True

    for suffix in knowledge.vocabulary.franchise_suffixes:
        match = find_phrase(text, suffix)
        if match is None:
            continue
        words: list[str] = []
        for raw in reversed(text[: match.start()].split()):
            word = raw.strip(TRAILING_PUNCTUATION)
            if not WORD_RE.fullmatch(word) or knowledge.is_filler(word):
                break
            words.insert(0, word)
            if len(words) == MAX_FRANCHISE_WORDS:
                break
        if words:
            intent.franchise_name = " ".join(words)
            logger.debug("Franchise before %r: %s", suffix, intent.franchise_name)
            return True
    return False


def detect_year_range(text: str, intent: SearchIntent, knowledge: KnowledgeBase) -> bool:
    vocab = knowledge.vocabulary
    for table in (vocab.decades, vocab.periods):
        for period in table:
            if any(contains_phrase(text, phrase) for phrase in period.phrases):
                intent.year_range = YearRange(period.start, period.end)
                logger.debug("Year range: %s", intent.year_range.label)
                return False

    match = YEAR_RE.search(text)
    if match:
        intent.year_range = YearRange.single(int(match.group(1)))
        logger.debug("Explicit year: %s", intent.year_range.label)
    return False


def detect_mood(text: str, intent: SearchIntent, knowledge: KnowledgeBase) -> bool:
    for group in knowledge.vocabulary.moods:
        if any(contains_phrase(text, phrase) for phrase in group.phrases):
            intent.mood = group.value
            logger.debug("Mood: %s", group.value)
            break
    return False


def detect_actor(text: str, intent: SearchIntent, knowledge: KnowledgeBase) -> bool:
    for name in knowledge.gazetteers.actors:
        if contains_phrase(text, name):
            intent.actor_name = name
            logger.debug("Known actor: %s", name)
            return False

    for phrase in knowledge.vocabulary.actor_phrases:
        for match in phrase_pattern(phrase).finditer(text):
            tail = text[match.end():]
            first = tail.split()[0].strip(TRAILING_PUNCTUATION) if tail.split() else ""
            if first in knowledge.mood_words:
                continue
            words = _leading_words(tail, knowledge, limit=MAX_NAME_WORDS)
            if len(words) < 2 or any(word.endswith("ing") for word in words):
                continue
            intent.actor_name = " ".join(words)
            logger.debug("Actor after %r: %s", phrase, intent.actor_name)
            return False
    return False


def detect_similar_title(
    text: str, intent: SearchIntent, knowledge: KnowledgeBase
) -> bool:
    if intent.actor_name or intent.mood or intent.similar_to_title:
        return False

    match = next(_similarity_matches(text, knowledge), None)
    if match is None:
        return False
    title = _title_at(text[match.end():], knowledge)
    if title:
        intent.similar_to_title = title
        logger.debug("Similar to: %s", title)
    return False


def detect_genres(text: str, intent: SearchIntent, knowledge: KnowledgeBase) -> bool:
    vocab = knowledge.vocabulary
    if any(contains_phrase(text, phrase) for phrase in vocab.romantic_comedy_phrases):
        intent.genres = list(ROMANTIC_COMEDY_GENRES)
        logger.debug("Romantic comedy phrase")
        return False

    for group in vocab.genres:
        if any(contains_phrase(text, phrase) for phrase in group.phrases):
            intent.add_genre(group.value)
    for group in vocab.typed_genres:
        if group.content_type != intent.content_type:
            continue
        if any(contains_phrase(text, phrase) for phrase in group.phrases):
            intent.add_genre(group.value)
    if intent.genres:
        logger.debug("Genres: %s", ", ".join(intent.genres))
    return False


def detect_country(text: str, intent: SearchIntent, knowledge: KnowledgeBase) -> bool:
    for group in knowledge.vocabulary.countries:
        if any(contains_phrase(text, phrase) for phrase in group.phrases):
            intent.country = group.value
            logger.debug("Country: %s", group.value)
            break
    return False


def detect_keywords(text: str, intent: SearchIntent, knowledge: KnowledgeBase) -> bool:
    if intent.actor_name or intent.similar_to_title:
        return False
    for word in WORD_RE.findall(text):
        if len(word) <= 3 or word.endswith("ly"):
            continue
        if word in knowledge.stop_words or word in knowledge.vocabulary_words:
            continue
        intent.add_keyword(word)
    return False


DETECTORS: tuple[Detector, ...] = (
    detect_content_type,
    detect_director,
    detect_franchise,
    detect_year_range,
    detect_mood,
    detect_actor,
    detect_similar_title,
    detect_genres,
    detect_country,
    detect_keywords,
)


class QueryParser:
    """Turn free text into a :class:`SearchIntent`."""

    def __init__(
        self,
        knowledge: KnowledgeBase | None = None,
        detectors: tuple[Detector, ...] = DETECTORS,
    ) -> None:
        self._knowledge = knowledge or get_knowledge()
        self._detectors = detectors

    @property
    def knowledge(self) -> KnowledgeBase:
        return self._knowledge

    def parse(self, text: str) -> SearchIntent:
        intent = SearchIntent()
        normalized = normalize_text(text)
        if not normalized:
            return intent

        for detector in self._detectors:
            if detector(normalized, intent, self._knowledge):
                logger.debug("Parsing stopped after %s", detector.__name__)
                break

        logger.debug(
            "Parsed %r using %s: %s",
            normalized,
            intent.search_strategy.value,
            intent.search_description,
        )
        return intent
