"""Domain errors raised by the scheduling engine."""


class InvalidRating(ValueError):
    """Raised when a review quality falls outside the 0-5 scale."""

    def __init__(self, quality: object):
        self.quality = quality
        super().__init__(f"Invalid rating {quality!r}: quality must be an integer in [0, 5]")
