"""Heuristic recommendation score for a resolved book."""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from bookscan.models import BookRecord, Recommendation, UserPreferences

MIN_SCORE = 1.0
MAX_SCORE = 5.0
NEUTRAL_SCORE = 3.0

GENRE_BONUS = 0.5
HIGH_RATING_BONUS = 0.3
HIGH_RATING_THRESHOLD = 4.0
POPULARITY_BONUS = 0.2
POPULARITY_THRESHOLD = 10000

GENRE_MATCH_REASON = "matches your favorite genres"
HIGH_RATING_REASON = "highly rated by the community"
POPULARITY_REASON = "very popular book"
DEFAULT_REASON = "based on your taste profile"
NO_PROFILE_REASON = "Complete your profile to get personalized recommendations"


def _round_half_up(value: float, places: str = "1") -> Decimal:
    return Decimal(repr(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP)


def matches_genres(book: BookRecord, favorite_genres) -> bool:
    """True if any category contains any favourite genre, ignoring case."""
    favorites = [g.lower() for g in favorite_genres or [] if g]
    return any(fav in category.lower() for category in book.categories for fav in favorites)


def score(book: BookRecord, prefs: Optional[UserPreferences] = None) -> Recommendation:
    """
    Compute a 1-5 star recommendation for ``book``.

    Without preferences the result is a fixed neutral 3 stars. Otherwise the
    book's average rating (3.0 when unrated) is the base and each triggered
    bonus is added once.

    Args:
        book: Resolved book record
        prefs: User profile, or None if the user never filled one in

    Returns:
        Recommendation with star rating, one-decimal score and rationale
    """
    if prefs is None:
        return Recommendation(star_rating=3, score=NEUTRAL_SCORE, rationale=NO_PROFILE_REASON)

    value = book.average_rating or NEUTRAL_SCORE
    reasons = []

    if matches_genres(book, prefs.favorite_genres):
        value += GENRE_BONUS
        reasons.append(GENRE_MATCH_REASON)

    if book.average_rating >= HIGH_RATING_THRESHOLD:
        value += HIGH_RATING_BONUS
        reasons.append(HIGH_RATING_REASON)

    if book.ratings_count > POPULARITY_THRESHOLD:
        value += POPULARITY_BONUS
        reasons.append(POPULARITY_REASON)

    value = min(MAX_SCORE, max(MIN_SCORE, value))

    return Recommendation(
        star_rating=int(_round_half_up(value, "1")),
        score=float(_round_half_up(value, "0.1")),
        rationale=", ".join(reasons) or DEFAULT_REASON,
    )
