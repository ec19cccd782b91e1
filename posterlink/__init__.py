"""PosterLink: turn a YouTube link into a color-matched poster."""

__version__ = "1.0.0"
