"""
Tests for storage key mapping and S3 URL parsing.
"""

import pytest

from lambdaimage.io.exceptions import KeyMappingError
from lambdaimage.io.url import KeyMapper, parse_s3_url


@pytest.fixture
def mapper():
    return KeyMapper(
        bucket="media-bucket",
        base_dir="/var/www/uploads",
        base_url="https://example.com/uploads",
    )


def test_path_under_base_dir(mapper):
    assert mapper.to_key("/var/www/uploads/2024/05/photo.jpg") == "2024/05/photo.jpg"


def test_url_under_base_url(mapper):
    assert mapper.to_key("https://example.com/uploads/2024/photo.jpg") == "2024/photo.jpg"


def test_filename_containing_bucket(mapper):
    assert mapper.to_key("https://media-bucket.s3.amazonaws.com/media-bucket/a/b.png") == "a/b.png"
    assert mapper.to_key("/mnt/s3/media-bucket/a/b.png") == "a/b.png"


def test_s3_url_in_configured_bucket(mapper):
    assert mapper.to_key("s3://media-bucket/2024/photo.jpg") == "2024/photo.jpg"


def test_s3_url_in_other_bucket_is_rejected(mapper):
    with pytest.raises(KeyMappingError):
        mapper.to_key("s3://other-bucket/2024/photo.jpg")


def test_path_outside_base_is_rejected(mapper):
    with pytest.raises(KeyMappingError) as exc_info:
        mapper.to_key("/tmp/photo.jpg")
    assert exc_info.value.code == "invalid_key"
    assert exc_info.value.data == "/tmp/photo.jpg"


def test_base_dir_prefix_must_match_whole_segment(mapper):
    with pytest.raises(KeyMappingError):
        mapper.to_key("/var/www/uploads-old/photo.jpg")


def test_base_dir_itself_has_no_key(mapper):
    with pytest.raises(KeyMappingError):
        mapper.to_key("/var/www/uploads")


def test_bucket_is_required():
    with pytest.raises(ValueError):
        KeyMapper(bucket="")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("s3://bucket/dir/file.jpg", ("bucket", "dir/file.jpg")),
        ("s3://bucket", ("bucket", None)),
        ("https://bucket.s3.eu-west-1.amazonaws.com/dir/file.jpg", ("bucket", "dir/file.jpg")),
        ("https://s3.eu-west-1.amazonaws.com/bucket/dir/file.jpg", ("bucket", "dir/file.jpg")),
        ("https://example.com/dir/file.jpg", (None, None)),
    ],
)
def test_parse_s3_url(url, expected):
    assert parse_s3_url(url) == expected


if __name__ == "__main__":
    pytest.main()
