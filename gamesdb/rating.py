"""Community score weighting.

Raw LaunchBox ratings come with wildly different vote counts: 100% from two
votes shouldn't outrank 92% from five thousand. The score pulls the approval
fraction toward 0.5 by a factor that shrinks as the number of votes grows.
"""

import math


def weighted_rating(vote_count: int, rating_percent: float) -> int:
    """Weight a rating percentage by its vote count.

    Args:
        vote_count: Number of community votes
        rating_percent: Approval on a 0-100 scale

    Returns:
        Integer score in [0, 100]. Zero votes give the neutral 50.
    """
    vote_count = max(int(vote_count or 0), 0)
    positive = math.floor(vote_count * (rating_percent or 0) / 100)
    negative = vote_count - positive

    total = positive + negative
    average = 0 if total < 1 else positive / total
    score = average - (average - 0.5) * 2 ** (-math.log10(total + 1))

    return min(max(int(score * 100), 0), 100)
