"""
Extractor adapters for vidlink.

This module wraps yt-dlp behind one adapter per platform. Each adapter turns a
platform URL into a normalized ``VideoResponse`` carrying a direct media URL,
and translates library failures into the vidlink error taxonomy.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import yt_dlp
from yt_dlp.extractor import get_info_extractor

from vidlink.core.config import settings
from vidlink.core.exceptions import (
    ExtractionError, InvalidURLError, NoDownloadableURLError,
    NoSuitableFormatError, ProcessingTimeoutError, classify_extraction_error
)
from vidlink.models.video import Platform, VideoResponse


logger = logging.getLogger(__name__)

# Consent cookie that skips the EU cookie wall on YouTube
CONSENT_COOKIE = "CONSENT=YES+cb; SOCS=CAI"

DIRECT_PROTOCOLS = (None, 'http', 'https')
IMAGE_EXTENSIONS = ('jpg', 'jpeg', 'png', 'webp', 'heic')


def _has_stream(fmt: Dict[str, Any], codec_key: str) -> bool:
    return fmt.get(codec_key) not in (None, 'none')


class VideoExtractor(ABC):
    """
    Base class for platform adapters backed by yt-dlp.

    yt-dlp is blocking, so extraction runs in the default thread pool and is
    bounded by ``timeout`` seconds.
    """

    platform: Platform

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.timeout = timeout if timeout is not None else settings.extraction_timeout
        self.user_agent = user_agent or settings.user_agent

        # Base yt-dlp options for metadata extraction only
        self.base_opts = {
            'quiet': True,
            'no_warnings': True,
            'noprogress': True,
            'simulate': True,
            'skip_download': True,
            'writesubtitles': False,
            'writeautomaticsub': False,
            'writethumbnail': False,
            # Falls back to separate streams when no muxed format exists
            'format': 'best/bestvideo+bestaudio',
            'socket_timeout': 15,
            'http_headers': {'User-Agent': self.user_agent},
        }

    @abstractmethod
    async def extract(self, url: str) -> VideoResponse:
        """
        Resolve a platform URL into a normalized response.

        Raises:
            VidLinkException: For every failure the client should see
        """

    def _build_opts(self, **overrides) -> Dict[str, Any]:
        return {**self.base_opts, **overrides}

    async def _extract_with_ytdlp(self, url: str, ydl_opts: Dict[str, Any]) -> Dict[str, Any]:
        """
        Extract metadata using yt-dlp in a separate thread.

        Args:
            url: Video URL
            ydl_opts: yt-dlp options

        Returns:
            Info dictionary from yt-dlp

        Raises:
            AgeRestrictedError: If the upstream site requires age verification
            ExtractionError: If extraction fails
            ProcessingTimeoutError: If extraction exceeds the timeout
        """
        def _extract():
            try:
                with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                    return ydl.extract_info(url, download=False)
            except yt_dlp.utils.DownloadError as e:
                raise classify_extraction_error(re.sub(r'^ERROR:\s*', '', str(e)))
            except Exception as e:
                raise ExtractionError(reason=f"Unexpected yt-dlp error: {str(e)}")

        try:
            loop = asyncio.get_running_loop()
            info = await asyncio.wait_for(
                loop.run_in_executor(None, _extract),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"{self.platform.value} extraction timed out for {url}")
            raise ProcessingTimeoutError(timeout_seconds=self.timeout)

        if not info:
            raise ExtractionError(reason="No metadata returned from yt-dlp")

        return info


class YouTubeExtractor(VideoExtractor):
    """YouTube adapter: validates the video URL, fetches info and picks a muxed format."""

    platform = Platform.YOUTUBE

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        super().__init__(timeout=timeout, user_agent=user_agent)
        self.request_opts = self._build_opts(
            noplaylist=True,
            http_headers={
                'User-Agent': self.user_agent,
                'Accept-Language': 'en-US,en;q=0.9',
                'Cookie': CONSENT_COOKIE,
            },
        )

    def validate(self, url: str) -> bool:
        """
        Delegate URL/ID format validation to yt-dlp's own YouTube extractor.

        Watch links carrying a playlist id are valid; ``noplaylist`` keeps
        extraction to the single video.
        """
        # suitable() vetoes any URL with a list= parameter
        return get_info_extractor('Youtube')._match_valid_url(url) is not None

    async def get_info(self, url: str) -> Dict[str, Any]:
        return await self._extract_with_ytdlp(url, self.request_opts)

    def choose_format(self, formats: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Pick the highest-quality format that carries audio and video together.

        Args:
            formats: Format list from yt-dlp

        Returns:
            The selected format dictionary

        Raises:
            NoSuitableFormatError: If every format is audio-only, video-only or
                not directly downloadable
        """
        candidates = [
            fmt for fmt in formats
            if fmt.get('url')
            and fmt.get('protocol') in DIRECT_PROTOCOLS
            and _has_stream(fmt, 'vcodec')
            and _has_stream(fmt, 'acodec')
        ]
        if not candidates:
            raise NoSuitableFormatError()

        return max(
            candidates,
            key=lambda fmt: (fmt.get('height') or 0, fmt.get('tbr') or 0, fmt.get('fps') or 0)
        )

    async def extract(self, url: str) -> VideoResponse:
        if not self.validate(url):
            raise InvalidURLError(platform="YouTube")

        logger.info(f"Extracting YouTube video: {url}")
        info = await self.get_info(url)
        chosen = self.choose_format(info.get('formats') or [])

        thumbnails = info.get('thumbnails') or []
        thumbnail = info.get('thumbnail') or (thumbnails[-1].get('url') if thumbnails else None)

        return VideoResponse(
            platform=self.platform,
            title=info.get('title'),
            thumbnail=thumbnail,
            duration=info.get('duration'),
            author=info.get('uploader') or info.get('channel'),
            download_url=chosen['url'],
        )


class InstagramExtractor(VideoExtractor):
    """Instagram adapter: resolves direct media links for a post or reel."""

    platform = Platform.INSTAGRAM

    @staticmethod
    def _media_url(entry: Dict[str, Any]) -> Optional[str]:
        if entry.get('url'):
            return entry['url']
        # Merged selections carry their URLs on the requested formats (video first)
        candidates = list(entry.get('requested_formats') or []) + list(reversed(entry.get('formats') or []))
        for fmt in candidates:
            if fmt.get('url'):
                return fmt['url']
        return None

    @staticmethod
    def _media_type(entry: Dict[str, Any]) -> str:
        if entry.get('ext') in IMAGE_EXTENSIONS or (entry.get('vcodec') == 'none' and not _has_stream(entry, 'acodec')):
            return 'image'
        return 'video'

    async def resolve(self, url: str) -> Dict[str, Any]:
        """
        Resolve every media item of a post.

        Returns:
            ``{"url_list": [...], "type": "video" | "image"}``; ``type`` describes
            the first item
        """
        info = await self._extract_with_ytdlp(url, self._build_opts())

        # Carousel posts come back as a playlist of entries
        entries = [entry for entry in (info.get('entries') or [info]) if entry]
        url_list = []
        for entry in entries:
            media_url = self._media_url(entry)
            if media_url:
                url_list.append(media_url)

        media_type = self._media_type(entries[0]) if entries else 'video'
        return {'url_list': url_list, 'type': media_type}

    async def extract(self, url: str) -> VideoResponse:
        logger.info(f"Resolving Instagram media: {url}")
        resolved = await self.resolve(url)

        if not resolved['url_list']:
            raise NoDownloadableURLError()

        return VideoResponse(
            platform=self.platform,
            download_url=resolved['url_list'][0],
            type=resolved['type'],
        )


def build_extractors(timeout: Optional[float] = None, user_agent: Optional[str] = None) -> Dict[Platform, VideoExtractor]:
    """Create one adapter per supported platform."""
    return {
        Platform.YOUTUBE: YouTubeExtractor(timeout=timeout, user_agent=user_agent),
        Platform.INSTAGRAM: InstagramExtractor(timeout=timeout, user_agent=user_agent),
    }
