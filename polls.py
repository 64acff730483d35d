"""
polls.py

Version: 1.0.00
Generated: 2026-10-17 09:30:00

Poll configurations for post_poll.py.

Add your polls to POLLS below. Entry 0 is what gets posted when no index
is given on the command line. Hashtags are appended to the title when a
poll is looked up, the entries in POLLS themselves are left alone.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

PROJECT_ROOT = Path(__file__).resolve().parent
IMAGES_DIR = PROJECT_ROOT / "images"


@dataclass(frozen=True)
class PollDefinition:
    title: str
    options: Tuple[str, ...]
    duration_hours: Optional[float] = None
    image_path: Optional[Path] = None
    hashtags: Tuple[str, ...] = ()


POLLS = [
    PollDefinition(
        title="What's your favorite programming language?",
        options=("JavaScript", "Python", "Java", "C++"),
        duration_hours=24,
        image_path=IMAGES_DIR / "test.png",
        hashtags=("programming", "coding", "dev"),
    ),
    # Add more polls as needed
    PollDefinition(
        title="Which framework do you prefer?",
        options=("React", "Vue", "Angular", "Svelte"),
        duration_hours=48,
        hashtags=("webdev", "frontend"),
    ),
]


def format_title(poll: PollDefinition) -> str:
    """Return the title with '#tag' words appended."""
    hashtags = " ".join(f"#{tag}" for tag in poll.hashtags)
    return f"{poll.title} {hashtags}" if hashtags else poll.title


def get_default_poll() -> PollDefinition:
    return get_poll_by_index(0)


def get_poll_by_index(index: int) -> Optional[PollDefinition]:
    """Return a formatted copy of POLLS[index], or None if there is no such poll."""
    if index < 0 or index >= len(POLLS):
        return None
    poll = POLLS[index]
    return replace(poll, title=format_title(poll))
