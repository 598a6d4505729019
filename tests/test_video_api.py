"""
Integration tests for the video API endpoint and service routes.

Tests GET /api/video with both platforms, platform auto-detection and
validation, caching behavior and error mapping, plus /, /ping and 404s.
"""

import json

import pytest
from fastapi.testclient import TestClient

from vidlink.core.exceptions import (
    AgeRestrictedError, ExtractionError, InvalidURLError, NoDownloadableURLError,
    classify_extraction_error
)
from vidlink.main import create_app
from vidlink.services.cache_manager import CacheManager


YOUTUBE_URL = 'https://www.youtube.com/watch?v=dQw4w9WgXcQ'
INSTAGRAM_URL = 'https://www.instagram.com/reel/C1a2B3c4D5e/'


class TestVideoAPI:
    """Test suite for the video endpoint."""

    def test_youtube_video_success(self, client, mock_youtube_extractor):
        response = client.get('/api/video', params={'url': YOUTUBE_URL})

        assert response.status_code == 200
        data = response.json()
        assert data['success'] is True
        assert data['platform'] == 'youtube'
        assert data['title'] == 'Test Video'
        assert data['duration'] == '212'
        assert data['author'] == 'Test Channel'
        assert data['download_url'].startswith('https://')
        assert 'type' not in data
        mock_youtube_extractor.extract.assert_awaited_once_with(YOUTUBE_URL)

    def test_instagram_video_success(self, client, mock_instagram_extractor):
        response = client.get('/api/video', params={'url': INSTAGRAM_URL})

        assert response.status_code == 200
        data = response.json()
        assert data == {
            'success': True,
            'platform': 'instagram',
            'download_url': 'https://scontent.cdninstagram.com/v/t50/video.mp4',
            'type': 'video',
        }
        mock_instagram_extractor.extract.assert_awaited_once_with(INSTAGRAM_URL)

    def test_explicit_platform(self, client, mock_youtube_extractor):
        response = client.get('/api/video', params={'url': YOUTUBE_URL, 'platform': 'youtube'})

        assert response.status_code == 200
        assert response.json()['platform'] == 'youtube'

    @pytest.mark.parametrize('params', [
        {},
        {'url': ''},
        {'url': '   '},
        {'platform': 'youtube'},
    ])
    def test_missing_url(self, client, params):
        response = client.get('/api/video', params=params)

        assert response.status_code == 400
        data = response.json()
        assert data['success'] is False
        assert data['error'] == 'URL is required'

    @pytest.mark.parametrize('params', [
        {'url': 'https://vimeo.com/123456789'},
        {'url': 'https://vimeo.com/123456789', 'platform': 'youtube'},
        {'url': 'not-a-url'},
        {'url': YOUTUBE_URL, 'platform': 'tiktok'},
    ])
    def test_unsupported_platform(self, client, extractors, params):
        response = client.get('/api/video', params=params)

        assert response.status_code == 400
        data = response.json()
        assert data['success'] is False
        assert 'Unsupported platform' in data['error']
        assert data['code'] == 'unsupported_platform'
        for extractor in extractors.values():
            extractor.extract.assert_not_awaited()

    def test_platform_mismatch(self, client, mock_instagram_extractor):
        response = client.get('/api/video', params={'url': YOUTUBE_URL, 'platform': 'instagram'})

        assert response.status_code == 400
        data = response.json()
        assert data['code'] == 'invalid_url'
        mock_instagram_extractor.extract.assert_not_awaited()

    def test_adapter_errors_are_mapped(self, client, mock_youtube_extractor):
        mock_youtube_extractor.extract.side_effect = InvalidURLError(platform='YouTube')

        response = client.get('/api/video', params={'url': YOUTUBE_URL})

        assert response.status_code == 400
        assert response.json() == {'success': False, 'error': 'Invalid YouTube URL', 'code': 'invalid_url'}

    def test_no_downloadable_url(self, client, mock_instagram_extractor):
        mock_instagram_extractor.extract.side_effect = NoDownloadableURLError()

        response = client.get('/api/video', params={'url': INSTAGRAM_URL})

        assert response.status_code == 400
        assert response.json()['error'] == 'No downloadable URL found'

    def test_age_restricted_upstream_error(self, client, mock_youtube_extractor):
        mock_youtube_extractor.extract.side_effect = classify_extraction_error(
            "[youtube] dQw4w9WgXcQ: Sign in to confirm your age. This video may be inappropriate for some users."
        )

        response = client.get('/api/video', params={'url': YOUTUBE_URL})

        assert response.status_code == 403
        data = response.json()
        assert data['success'] is False
        assert data['error'] == AgeRestrictedError().message
        assert data['code'] == 'age_restricted'

    def test_upstream_failure_forwards_message_in_development(self, client, mock_youtube_extractor):
        mock_youtube_extractor.extract.side_effect = ExtractionError(reason='Video unavailable')

        response = client.get('/api/video', params={'url': YOUTUBE_URL})

        assert response.status_code == 500
        assert response.json()['error'] == 'Video unavailable'

    def test_upstream_failure_redacted_in_production(
        self, production_settings, cache, rate_limiter, extractors, mock_youtube_extractor
    ):
        mock_youtube_extractor.extract.side_effect = ExtractionError(reason='secret upstream detail')
        client = TestClient(create_app(production_settings, cache=cache, rate_limiter=rate_limiter, extractors=extractors))

        response = client.get('/api/video', params={'url': YOUTUBE_URL})

        assert response.status_code == 500
        data = response.json()
        assert data['error'] == 'Failed to extract video information'
        assert 'secret' not in response.text

    def test_unexpected_error_is_internal_error(self, client, mock_youtube_extractor):
        mock_youtube_extractor.extract.side_effect = RuntimeError('boom')

        response = client.get('/api/video', params={'url': YOUTUBE_URL})

        assert response.status_code == 500
        data = response.json()
        assert data['success'] is False
        assert data['error'] == 'Internal Server Error'
        assert data['message'] == 'boom'


class TestVideoCaching:
    """Caching behaviour of the video endpoint."""

    def test_second_request_served_from_cache(self, client, mock_youtube_extractor):
        first = client.get('/api/video', params={'url': YOUTUBE_URL})
        second = client.get('/api/video', params={'url': YOUTUBE_URL})

        assert first.status_code == second.status_code == 200
        assert first.content == second.content
        assert mock_youtube_extractor.extract.await_count == 1

    def test_cache_is_shared_across_clients(self, client, mock_youtube_extractor):
        client.get('/api/video', params={'url': YOUTUBE_URL}, headers={'X-Forwarded-For': '198.51.100.1'})
        client.get('/api/video', params={'url': YOUTUBE_URL}, headers={'X-Forwarded-For': '198.51.100.2'})

        assert mock_youtube_extractor.extract.await_count == 1

    def test_expired_entry_is_extracted_again(self, settings, rate_limiter, extractors, mock_youtube_extractor, clock):
        cache = CacheManager(ttl=2, max_entries=10, clock=clock)
        client = TestClient(create_app(settings, cache=cache, rate_limiter=rate_limiter, extractors=extractors))

        client.get('/api/video', params={'url': YOUTUBE_URL})
        clock.advance(1)
        client.get('/api/video', params={'url': YOUTUBE_URL})
        assert mock_youtube_extractor.extract.await_count == 1

        clock.advance(2)
        client.get('/api/video', params={'url': YOUTUBE_URL})
        assert mock_youtube_extractor.extract.await_count == 2

    def test_errors_are_not_cached(self, client, cache, mock_youtube_extractor, youtube_response):
        mock_youtube_extractor.extract.side_effect = [ExtractionError(reason='temporary'), youtube_response]

        first = client.get('/api/video', params={'url': YOUTUBE_URL})
        second = client.get('/api/video', params={'url': YOUTUBE_URL})

        assert first.status_code == 500
        assert second.status_code == 200
        assert len(cache) == 1
        assert mock_youtube_extractor.extract.await_count == 2

    def test_cached_body_matches_response(self, client, cache):
        response = client.get('/api/video', params={'url': INSTAGRAM_URL})

        assert json.loads(response.content) == cache._cache[INSTAGRAM_URL]


class TestServiceRoutes:
    """Descriptor, liveness and fallback routes."""

    def test_root_descriptor(self, client):
        response = client.get('/')

        assert response.status_code == 200
        data = response.json()
        assert data['success'] is True
        assert data['name'] == 'Video Downloader API'
        assert data['version'] == '1.0.0'
        assert data['endpoints']['video'] == '/api/video?url=VIDEO_URL'
        assert data['supported_platforms'] == {
            'youtube': ['youtube.com', 'youtu.be'],
            'instagram': ['instagram.com'],
        }
        assert data['endpoints']['documentation'] == '/api-docs'

    def test_ping(self, client):
        response = client.get('/ping')

        assert response.status_code == 200
        assert response.text == 'pong'

    def test_api_docs(self, client):
        assert client.get('/api-docs').status_code == 200

        schema = client.get('/openapi.json').json()
        assert '/api/video' in schema['paths']

    def test_unknown_route_returns_json_404(self, client):
        response = client.get('/nonexistent')

        assert response.status_code == 404
        assert response.json() == {
            'success': False,
            'error': 'Not Found',
            'code': 'not_found',
            'message': 'The requested resource does not exist',
        }

    def test_wrong_method_returns_json(self, client):
        response = client.delete('/api/video')

        assert response.status_code == 405
        data = response.json()
        assert data['success'] is False
        assert data['code'] == 'method_not_allowed'

    @pytest.mark.parametrize('path', ['/', '/ping', '/nonexistent', '/api/video'])
    def test_security_headers(self, client, path):
        response = client.get(path)

        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'DENY'
        assert response.headers['X-XSS-Protection'] == '1; mode=block'

    def test_cors_permissive_in_development(self, client):
        response = client.get('/', headers={'Origin': 'https://anywhere.example'})

        assert response.headers['access-control-allow-origin'] == '*'

    def test_cors_restricted_in_production(self, production_settings, cache, rate_limiter, extractors):
        client = TestClient(create_app(production_settings, cache=cache, rate_limiter=rate_limiter, extractors=extractors))

        allowed = client.get('/', headers={'Origin': 'https://frontend.example.com'})
        denied = client.get('/', headers={'Origin': 'https://evil.example'})

        assert allowed.headers['access-control-allow-origin'] == 'https://frontend.example.com'
        assert 'access-control-allow-origin' not in denied.headers


class TestAppWiring:
    """Injected collaborators are the ones the application uses."""

    def test_injected_collaborators_are_kept(self, settings, cache, rate_limiter, extractors):
        app = create_app(settings, cache=cache, rate_limiter=rate_limiter, extractors=extractors)

        assert app.state.settings is settings
        assert app.state.cache is cache
        assert app.state.rate_limiter is rate_limiter
        assert app.state.extractors is extractors

    def test_empty_collaborators_are_not_replaced(self, settings, rate_limiter):
        empty_cache = CacheManager(ttl=10, max_entries=5)
        no_extractors = {}
        assert len(empty_cache) == 0

        app = create_app(settings, cache=empty_cache, rate_limiter=rate_limiter, extractors=no_extractors)

        assert app.state.cache is empty_cache
        assert app.state.extractors is no_extractors
