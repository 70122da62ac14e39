import pytest

from community_hub.utils.youtube import thumbnail_url, video_id


@pytest.mark.parametrize('url, expected', [
    ('https://www.youtube.com/watch?v=dQw4w9WgXcQ', 'dQw4w9WgXcQ'),
    ('https://youtube.com/watch?feature=share&v=dQw4w9WgXcQ', 'dQw4w9WgXcQ'),
    ('https://youtu.be/dQw4w9WgXcQ?t=42', 'dQw4w9WgXcQ'),
    ('https://www.youtube.com/embed/dQw4w9WgXcQ', 'dQw4w9WgXcQ'),
    ('https://m.youtube.com/shorts/dQw4w9WgXcQ', 'dQw4w9WgXcQ'),
    ('https://vimeo.com/12345', None),
    ('https://www.youtube.com/', None),
    ('not a url', None),
    ('', None),
])
def test_video_id(url, expected):
    assert video_id(url) == expected


def test_thumbnail_url():
    assert thumbnail_url('https://youtu.be/abc') == 'https://img.youtube.com/vi/abc/hqdefault.jpg'
    assert thumbnail_url('https://example.com/abc') is None
