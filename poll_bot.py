"""
poll_bot.py

Version: 1.0.00
Generated: 2026-10-17 09:30:00

X/Twitter poll posting for the poll bot.

This module holds everything that talks to X:
- Credential check against the "who am I" endpoint (v2 get_me)
- Image upload via the v1.1 chunked media endpoints (free tier allows this)
- Poll creation via API v2 (Client.create_tweet), optionally as a reply to
  an image post so the poll and the picture appear together in one thread

Every HTTP failure coming out of tweepy is turned into a RemoteError at the
XApi boundary. PollBot then maps the status codes it knows how to explain
(401, 403, 429) onto the more specific errors below.
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List

import tweepy

from polls import PollDefinition

logger = logging.getLogger("poll_bot")

# -----------------------
# Configuration
# -----------------------

DEFAULT_DURATION_HOURS = 24
MAX_POLL_OPTIONS = 4

# Body of the poll post when it is threaded under an image post.
# The image post carries the real title.
POLL_REPLY_TEXT = "please vote"

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

SETUP_CHECKLIST = (
    "Please ensure you have:\n"
    "1. Enabled OAuth 1.0a in Developer Portal\n"
    "2. Set App permissions to \"Read and write\"\n"
    "3. Generated Access Tokens with appropriate permissions\n"
    "4. Added all credentials to your .env file"
)

PERMISSIONS_CHECKLIST = (
    "1. OAuth 1.0a is enabled in Developer Portal\n"
    "2. App permissions are set to \"Read and write\"\n"
    "3. Access Tokens were generated after setting correct permissions\n"
    "4. Type of App is set to \"Native App\"\n"
    "5. Callback URL is set to http://127.0.0.1"
)


# -----------------------
# Errors
# -----------------------

class PollBotError(Exception):
    """Base class for everything the poll bot raises on purpose."""


class MissingCredentials(PollBotError):
    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(
            f"Missing X API credentials: {', '.join(missing)}\n{SETUP_CHECKLIST}"
        )


class InvalidCredentials(PollBotError):
    pass


class InsufficientPermissions(PollBotError):
    pass


class RateLimited(PollBotError):
    pass


class InvalidPollData(PollBotError):
    pass


class UnsupportedFormat(PollBotError):
    pass


class InvalidSchedule(PollBotError):
    pass


class RemoteError(PollBotError):
    """
    Any failed HTTP call to X.

    Carries the status code, the API's own message and the rate limit
    headers so callers can log them.
    """

    def __init__(
        self,
        code: int,
        message: str,
        rate_limit_remaining: Optional[str] = None,
        rate_limit_reset: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.rate_limit_remaining = rate_limit_remaining
        self.rate_limit_reset = rate_limit_reset
        super().__init__(f"X API error {code}: {message}")

    @classmethod
    def from_tweepy(cls, exc: tweepy.errors.HTTPException) -> "RemoteError":
        response = exc.response
        code = getattr(response, "status_code", None)
        if code is None:
            code = getattr(response, "status", 0)
        headers = getattr(response, "headers", None) or {}
        message = "; ".join(str(m) for m in exc.api_messages) or str(exc)
        return cls(
            code,
            message,
            rate_limit_remaining=headers.get("x-rate-limit-remaining"),
            rate_limit_reset=headers.get("x-rate-limit-reset"),
        )


# -----------------------
# Credentials
# -----------------------

@dataclass(frozen=True)
class Credentials:
    api_key: str
    api_secret: str
    access_token: str
    access_token_secret: str

    def __post_init__(self):
        labels = {
            "API Key": self.api_key,
            "API Secret": self.api_secret,
            "Access Token": self.access_token,
            "Access Secret": self.access_token_secret,
        }
        missing = [label for label, value in labels.items() if not value]
        if missing:
            raise MissingCredentials(missing)

    @classmethod
    def from_env(cls) -> "Credentials":
        """Build from X_* environment variables (call load_dotenv first)."""
        return cls(
            api_key=os.getenv("X_API_KEY", ""),
            api_secret=os.getenv("X_API_SECRET", ""),
            access_token=os.getenv("X_ACCESS_TOKEN", ""),
            access_token_secret=os.getenv("X_ACCESS_TOKEN_SECRET", ""),
        )


# -----------------------
# X API boundary
# -----------------------

class XApi:
    """Thin wrapper over tweepy that speaks RemoteError instead of tweepy errors."""

    def __init__(self, credentials: Credentials):
        # API v2 Client for identity lookup and posting
        self.client = tweepy.Client(
            consumer_key=credentials.api_key,
            consumer_secret=credentials.api_secret,
            access_token=credentials.access_token,
            access_token_secret=credentials.access_token_secret,
        )
        # Media upload still uses v1.1 API
        auth = tweepy.OAuth1UserHandler(
            consumer_key=credentials.api_key,
            consumer_secret=credentials.api_secret,
            access_token=credentials.access_token,
            access_token_secret=credentials.access_token_secret,
        )
        self.api_v1 = tweepy.API(auth)

    def get_me(self) -> str:
        """Return the id of the authenticated user."""
        try:
            response = self.client.get_me(user_auth=True)
        except tweepy.errors.HTTPException as e:
            raise RemoteError.from_tweepy(e) from e
        return str(response.data.id)

    def upload_media(self, filename: str, data: bytes, mime_type: str) -> str:
        """Upload raw image bytes and return the media id string."""
        media_category = "tweet_gif" if mime_type == "image/gif" else "tweet_image"
        try:
            media = self.api_v1.chunked_upload(
                filename,
                file=io.BytesIO(data),
                file_type=mime_type,
                media_category=media_category,
            )
        except tweepy.errors.HTTPException as e:
            raise RemoteError.from_tweepy(e) from e
        return media.media_id_string

    def create_post(
        self,
        text: str,
        poll_options: Optional[List[str]] = None,
        poll_duration_minutes: Optional[int] = None,
        in_reply_to: Optional[str] = None,
        media_ids: Optional[List[str]] = None,
    ) -> dict:
        """
        Create a post via API v2.

        tweepy builds the body as
          {text, poll: {options, duration_minutes},
           reply: {in_reply_to_tweet_id}, media: {media_ids}}
        leaving out whatever is None.
        """
        try:
            response = self.client.create_tweet(
                text=text,
                poll_options=poll_options,
                poll_duration_minutes=poll_duration_minutes,
                in_reply_to_tweet_id=in_reply_to,
                media_ids=media_ids,
                user_auth=True,
            )
        except tweepy.errors.HTTPException as e:
            raise RemoteError.from_tweepy(e) from e
        return response.data


# -----------------------
# Bot
# -----------------------

def mime_type_for(path: Path) -> str:
    """Return the MIME type for an image path, judged by extension only."""
    ext = Path(path).suffix.lower()
    mime_type = MIME_TYPES.get(ext)
    if mime_type is None:
        raise UnsupportedFormat(
            f"Unsupported image format: {ext or '(none)'}. "
            "Supported formats are: PNG, JPEG, GIF, WebP"
        )
    return mime_type


def hours_to_minutes(hours):
    """Convert hours to whole minutes when exact, otherwise keep the fraction."""
    minutes = hours * 60
    if float(minutes).is_integer():
        return int(minutes)
    return minutes


class PollBot:
    def __init__(
        self,
        credentials: Credentials,
        default_duration_hours: float = DEFAULT_DURATION_HOURS,
        api: Optional[XApi] = None,
    ):
        self.credentials = credentials
        self.default_duration_hours = default_duration_hours or DEFAULT_DURATION_HOURS
        self.api = api if api is not None else XApi(credentials)

    def verify_credentials(self) -> str:
        """
        Check the credentials by fetching our own user.

        Returns the user id. 401 and 403 become InvalidCredentials and
        InsufficientPermissions; anything else propagates unchanged.
        """
        try:
            user_id = self.api.get_me()
        except RemoteError as e:
            if e.code == 401:
                raise InvalidCredentials(
                    "Invalid X API credentials. Please check:\n"
                    "1. API Key and Secret are correct\n"
                    "2. Access Token and Secret are correct\n"
                    "3. Tokens have not expired or been revoked"
                ) from e
            if e.code == 403:
                raise InsufficientPermissions(
                    "Account does not have required permissions. Please verify:\n"
                    + PERMISSIONS_CHECKLIST
                ) from e
            raise
        logger.info("X API credentials verified successfully (user id %s)", user_id)
        return user_id

    def upload_image(self, image_path) -> str:
        """Upload an image file and return the media id X assigned to it."""
        image_path = Path(image_path)
        # Reject unknown formats before touching the disk
        mime_type = mime_type_for(image_path)
        try:
            data = image_path.read_bytes()
            logger.info(
                "Uploading image: %s (%s, %d bytes)", image_path, mime_type, len(data)
            )
            media_id = self.api.upload_media(image_path.name, data, mime_type)
        except Exception as e:
            logger.error("Error uploading image %s: %s", image_path, e)
            raise
        logger.info("Image uploaded successfully: media id %s", media_id)
        return media_id

    def poll_duration_minutes(self, poll: PollDefinition):
        hours = poll.duration_hours or self.default_duration_hours
        if hours <= 0:
            raise InvalidPollData(f"Poll duration must be positive, got {hours} hours")
        return hours_to_minutes(hours)

    def create_poll(self, poll: PollDefinition) -> dict:
        """
        Post a poll. If the poll has an image, the image goes out first as its
        own post carrying the title, and the poll is posted as a reply to it.

        Returns the data X sent back for the poll post ({"id", "text"}).
        """
        try:
            if not poll.title or not poll.options:
                raise InvalidPollData("Poll title and options are required")
            if len(poll.options) > MAX_POLL_OPTIONS:
                raise InvalidPollData(
                    f"Maximum {MAX_POLL_OPTIONS} options are allowed for a poll"
                )
            duration = self.poll_duration_minutes(poll)

            self.verify_credentials()

            reply_to = None
            if poll.image_path:
                media_id = self.upload_image(poll.image_path)
                image_post = self.api.create_post(text=poll.title, media_ids=[media_id])
                reply_to = image_post["id"]
                logger.info("Image post created successfully: %s", reply_to)

            tweet = self.api.create_post(
                text=POLL_REPLY_TEXT if reply_to else poll.title,
                poll_options=list(poll.options),
                poll_duration_minutes=duration,
                in_reply_to=reply_to,
            )
            logger.info("Poll created successfully: %s", tweet["id"])
            return tweet

        except RemoteError as e:
            logger.error(
                "X API error: code=%s message=%s rate_limit_remaining=%s reset_at=%s",
                e.code, e.message, e.rate_limit_remaining, e.rate_limit_reset,
            )
            logger.error(
                "Error creating poll '%s' %s: %s", poll.title, list(poll.options), e
            )
            if e.code == 429:
                raise RateLimited("Rate limit exceeded. Please try again later.") from e
            if e.code == 403:
                raise InsufficientPermissions(
                    "Unable to create poll. Please verify:\n" + PERMISSIONS_CHECKLIST
                ) from e
            raise
        except Exception as e:
            logger.error(
                "Error creating poll '%s' %s: %s", poll.title, list(poll.options), e
            )
            raise
