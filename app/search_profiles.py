"""Declarative retrieval tables for movie and series genre searches."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .intent import YearRange
from .models import ContentType, RequestedType


@dataclass(frozen=True)
class EraBucket:
    """A slice of release years queried separately to diversify results."""

    label: str
    start: int
    end: int
    max_results: int
    min_rating: float

    @property
    def year_range(self) -> YearRange:
        return YearRange(self.start, self.end)


@dataclass(frozen=True)
class GenreProfile:
    """Era buckets for one genre and whether older titles get a boost."""

    buckets: tuple[EraBucket, ...]
    prioritize_classics: bool = False


@dataclass(frozen=True)
class ThresholdRule:
    """Quality floor applied when any of ``genres`` is requested."""

    genres: frozenset[str]
    min_rating: float | None = None
    min_votes: int | None = None


@dataclass(frozen=True)
class KindProfile:
    """Everything the genre search needs to know about one media kind."""

    kind: ContentType
    genre_ids: Mapping[str, int]
    default_genre_id: int
    genre_names: Mapping[int, str]
    era_profiles: Mapping[str, GenreProfile]
    default_era_profile: GenreProfile
    threshold_rules: tuple[ThresholdRule, ...]
    default_min_rating: float
    default_min_votes: int
    classic_vote_floor: int
    modern_vote_floor: int
    classics_before: int
    classics_min_rating: float
    action_genre_id: int
    region: str | None = None
    combination_exclusions: Mapping[frozenset[str], tuple[int, ...]] = field(
        default_factory=dict
    )
    classics_bonus: float = 0.5
    undated_year: int = 2024
    original_language: str = "en"

    def genre_id(self, genre: str) -> int:
        return self.genre_ids.get(genre.strip().lower(), self.default_genre_id)

    def genre_ids_for(self, genres: Iterable[str]) -> tuple[int, ...]:
        ids: list[int] = []
        for genre in genres:
            genre_id = self.genre_id(genre)
            if genre_id not in ids:
                ids.append(genre_id)
        return tuple(ids)

    def era_profile(self, genre: str) -> GenreProfile:
        return self.era_profiles.get(genre.strip().lower(), self.default_era_profile)

    def vote_floor(self, bucket: EraBucket) -> int:
        """Older buckets have fewer votes, so their floor is lower."""

        return self.classic_vote_floor if bucket.end < 2000 else self.modern_vote_floor

    def thresholds(self, genres: Iterable[str]) -> tuple[float, int]:
        """Return ``(min_rating, min_votes)`` for the requested genres."""

        requested = {genre.strip().lower() for genre in genres}
        min_rating = self.default_min_rating
        min_votes = self.default_min_votes
        for rule in self.threshold_rules:
            if rule.min_rating is not None and requested & rule.genres:
                min_rating = rule.min_rating
                break
        for rule in self.threshold_rules:
            if rule.min_votes is not None and requested & rule.genres:
                min_votes = rule.min_votes
                break
        return min_rating, min_votes

    def exclusions(self, genres: Iterable[str]) -> tuple[int, ...]:
        requested = frozenset(genre.strip().lower() for genre in genres)
        for combination, excluded in self.combination_exclusions.items():
            if combination <= requested:
                return excluded
        return ()

    def classics_score(self, rating: float | None, year: int | None) -> float:
        rating = rating or 0.0
        year = year if year is not None else self.undated_year
        if year < self.classics_before and rating > self.classics_min_rating:
            return rating + self.classics_bonus
        return rating


@dataclass(frozen=True)
class SpecialtyDefinition:
    """A curated regional or audience lane backed by a discovery call."""

    key: str
    aliases: tuple[str, ...]
    series_only: bool = False
    movie_only: bool = False
    genre_ids: Mapping[ContentType, tuple[int, ...]] = field(default_factory=dict)
    origin_country: str | None = None
    original_language: str | None = None

    def kind_for(self, requested: RequestedType | None) -> ContentType | None:
        """Return the kind to query, or ``None`` when nothing applies."""

        if self.series_only:
            return "series"
        if self.movie_only:
            return None if requested == "series" else "movie"
        return "series" if requested == "series" else "movie"


MOVIE_GENRE_IDS: dict[str, int] = {
    "action": 28,
    "adventure": 12,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "kids & family": 10751,
    "fantasy": 14,
    "history": 36,
    "horror": 27,
    "music": 10402,
    "mystery": 9648,
    "romance": 10749,
    "sci-fi": 878,
    "science fiction": 878,
    "thriller": 53,
    "war": 10752,
    "western": 37,
}

SERIES_GENRE_IDS: dict[str, int] = {
    "action": 10759,
    "adventure": 10759,
    "action & adventure": 10759,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "kids": 10762,
    "kids & family": 10762,
    "mystery": 9648,
    "thriller": 9648,
    "news": 10763,
    "reality": 10764,
    "sci-fi": 10765,
    "science fiction": 10765,
    "fantasy": 10765,
    "soap": 10766,
    "talk": 10767,
    "war": 10768,
    "western": 37,
}

MOVIE_GENRE_NAMES: dict[int, str] = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}

SERIES_GENRE_NAMES: dict[int, str] = {
    10759: "Action & Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    10762: "Kids",
    9648: "Mystery",
    10763: "News",
    10764: "Reality",
    10765: "Sci-Fi & Fantasy",
    10766: "Soap",
    10767: "Talk",
    10768: "War & Politics",
    37: "Western",
}


MOVIE_PROFILE = KindProfile(
    kind="movie",
    genre_ids=MOVIE_GENRE_IDS,
    default_genre_id=35,
    genre_names=MOVIE_GENRE_NAMES,
    era_profiles={
        "comedy": GenreProfile(
            buckets=(
                EraBucket("Modern", 2015, 2024, 3, 6.0),
                EraBucket("2000s-2010s", 2000, 2014, 3, 6.5),
                EraBucket("90s Classics", 1990, 1999, 2, 7.0),
                EraBucket("80s Gems", 1980, 1989, 2, 7.0),
            ),
            prioritize_classics=True,
        ),
        "drama": GenreProfile(
            buckets=(
                EraBucket("Recent", 2015, 2024, 3, 6.5),
                EraBucket("2000s-2010s", 2000, 2014, 3, 7.0),
                EraBucket("90s Masterpieces", 1990, 1999, 2, 7.5),
                EraBucket("Classic Era", 1970, 1989, 2, 7.5),
            ),
            prioritize_classics=True,
        ),
        "action": GenreProfile(
            buckets=(
                EraBucket("Modern Action", 2015, 2024, 4, 6.0),
                EraBucket("2010s Action", 2010, 2014, 3, 6.5),
                EraBucket("2000s Action", 2000, 2009, 2, 6.5),
                EraBucket("90s-80s Action", 1980, 1999, 1, 7.0),
            ),
        ),
    },
    default_era_profile=GenreProfile(
        buckets=(
            EraBucket("Recent", 2015, 2024, 4, 6.0),
            EraBucket("2000s-2010s", 2000, 2014, 3, 6.5),
            EraBucket("90s-80s", 1980, 1999, 3, 6.5),
        ),
    ),
    threshold_rules=(
        ThresholdRule(frozenset({"romance", "comedy"}), min_rating=5.5, min_votes=200),
        ThresholdRule(frozenset({"horror"}), min_rating=5.8),
        ThresholdRule(frozenset({"action"}), min_rating=6.0, min_votes=200),
    ),
    default_min_rating=6.5,
    default_min_votes=100,
    classic_vote_floor=50,
    modern_vote_floor=200,
    classics_before=2000,
    classics_min_rating=7.0,
    action_genre_id=28,
    region="US",
    combination_exclusions={
        frozenset({"romance", "comedy"}): (16, 18, 99, 36),
    },
)

SERIES_PROFILE = KindProfile(
    kind="series",
    genre_ids=SERIES_GENRE_IDS,
    default_genre_id=18,
    genre_names=SERIES_GENRE_NAMES,
    era_profiles={
        "comedy": GenreProfile(
            buckets=(
                EraBucket("Modern Comedy", 2015, 2024, 4, 6.0),
                EraBucket("2000s-2010s Comedy", 2000, 2014, 3, 6.5),
                EraBucket("Classic Sitcoms", 1990, 1999, 2, 7.0),
                EraBucket("Vintage Comedy", 1980, 1989, 1, 7.0),
            ),
            prioritize_classics=True,
        ),
        "drama": GenreProfile(
            buckets=(
                EraBucket("Prestige TV", 2010, 2024, 4, 7.0),
                EraBucket("Golden Age", 2000, 2009, 3, 7.5),
                EraBucket("Classic Dramas", 1990, 1999, 2, 7.5),
                EraBucket("Vintage Dramas", 1980, 1989, 1, 8.0),
            ),
            prioritize_classics=True,
        ),
        "crime": GenreProfile(
            buckets=(
                EraBucket("Modern Crime", 2010, 2024, 4, 7.0),
                EraBucket("Crime Boom", 2000, 2009, 3, 7.5),
                EraBucket("Classic Crime", 1990, 1999, 2, 7.5),
                EraBucket("Vintage Procedurals", 1980, 1989, 1, 7.0),
            ),
            prioritize_classics=True,
        ),
    },
    default_era_profile=GenreProfile(
        buckets=(
            EraBucket("Recent TV", 2015, 2024, 4, 6.5),
            EraBucket("2000s-2010s TV", 2000, 2014, 3, 7.0),
            EraBucket("Classic TV", 1990, 1999, 2, 7.0),
            EraBucket("Vintage TV", 1980, 1989, 1, 7.5),
        ),
    ),
    threshold_rules=(
        ThresholdRule(frozenset({"comedy"}), min_rating=6.0),
        ThresholdRule(frozenset({"reality", "talk"}), min_rating=5.0),
    ),
    default_min_rating=6.5,
    default_min_votes=50,
    classic_vote_floor=30,
    modern_vote_floor=100,
    classics_before=2005,
    classics_min_rating=7.5,
    action_genre_id=10759,
    combination_exclusions={
        frozenset({"romance", "comedy"}): (16, 99),
    },
)

PROFILES: dict[ContentType, KindProfile] = {
    "movie": MOVIE_PROFILE,
    "series": SERIES_PROFILE,
}


def profile_for(kind: ContentType) -> KindProfile:
    return PROFILES[kind]


SPECIALTIES: tuple[SpecialtyDefinition, ...] = (
    SpecialtyDefinition(
        key="british tv",
        aliases=("britishtvshows", "british tv", "british tv shows"),
        series_only=True,
        origin_country="GB",
    ),
    SpecialtyDefinition(
        key="k-dramas",
        aliases=("kdramas", "k-dramas", "k-drama", "kdrama", "korean dramas"),
        series_only=True,
        genre_ids={"series": (18,)},
        origin_country="KR",
    ),
    SpecialtyDefinition(
        key="telenovelas",
        aliases=("telenovelas", "telenovela"),
        series_only=True,
        genre_ids={"series": (18,)},
        original_language="es",
    ),
    SpecialtyDefinition(
        key="anime",
        aliases=("anime", "animetvshows", "anime tv", "anime shows"),
        genre_ids={"movie": (16,), "series": (16,)},
        origin_country="JP",
    ),
    SpecialtyDefinition(
        key="bollywood",
        aliases=("bollywood",),
        movie_only=True,
        origin_country="IN",
        original_language="hi",
    ),
    SpecialtyDefinition(
        key="kids & family",
        aliases=("kids & family", "kids and family"),
        genre_ids={"movie": (10751,), "series": (10762,)},
    ),
)

SPECIALTIES_BY_ALIAS: dict[str, SpecialtyDefinition] = {
    alias: definition for definition in SPECIALTIES for alias in definition.aliases
}

COUNTRY_SPECIALTIES: dict[str, str] = {
    "KR": "k-dramas",
    "GB": "british tv",
    "IN": "bollywood",
    "ES": "telenovelas",
}


def find_specialty(name: str) -> SpecialtyDefinition | None:
    return SPECIALTIES_BY_ALIAS.get(name.strip().lower())


ROMANTIC_COMEDY_ALIASES: frozenset[str] = frozenset(
    {"romantic comedy", "romantic comedies", "rom com", "rom-com", "romcom"}
)

SUPERHERO_TERMS: tuple[str, ...] = (
    "superhero",
    "super hero",
    "marvel",
    "batman",
    "superman",
    "spider-man",
    "spider man",
    "wonder woman",
    "captain america",
    "iron man",
    "thor",
    "hulk",
    "x-men",
    "fantastic four",
    "justice league",
    "avengers",
    "dc",
    "comic book",
    "mcu",
    "deadpool",
    "aquaman",
    "flash",
    "green lantern",
)

SUPERHERO_QUERIES: tuple[str, ...] = (
    "marvel avengers",
    "batman superman",
    "spider-man",
    "wonder woman",
)
