"""Tests for validation utilities."""
import pytest

from listingmedia.exceptions import ValidationError
from listingmedia.models.image import UploadedFile
from listingmedia.utils.validation import (
    validate_id,
    validate_image_file,
    validate_non_empty,
    validate_page,
    validate_storage_key,
    validate_upload_batch,
)


def image(name='a.jpg', content=b'123', content_type='image/jpeg'):
    return UploadedFile(filename=name, content=content, content_type=content_type)


class TestValidateNonEmpty:

    def test_valid(self):
        validate_non_empty("value", "Field")

    @pytest.mark.parametrize('value', ['', '   ', None])
    def test_empty(self, value):
        with pytest.raises(ValidationError, match="Field cannot be empty"):
            validate_non_empty(value, "Field")

    def test_validate_id_default_name(self):
        with pytest.raises(ValidationError, match="ID cannot be empty"):
            validate_id("")

    @pytest.mark.parametrize('value', ['x/abc', '..', 'a\\b'])
    def test_validate_id_rejects_path_parts(self, value):
        with pytest.raises(ValidationError, match="Invalid Offer ID"):
            validate_id(value, "Offer ID")


class TestValidateStorageKey:

    @pytest.mark.parametrize('key', ['1700-a.jpg', 'listing-images/abc.png', 'offer_images/1-a b'])
    def test_valid(self, key):
        validate_storage_key(key)

    @pytest.mark.parametrize('key', ['../etc/passwd', 'a/../../b', '/abs/path', 'dir\\file', ''])
    def test_invalid(self, key):
        with pytest.raises(ValidationError):
            validate_storage_key(key)


class TestValidateImageFile:

    def test_valid(self):
        validate_image_file(image())

    def test_too_large(self):
        with pytest.raises(ValidationError, match="maximum size of 2 bytes"):
            validate_image_file(image(content=b'123'), max_file_size=2)

    def test_wrong_type(self):
        with pytest.raises(ValidationError, match="not an image"):
            validate_image_file(image(content_type='application/pdf'))

    def test_missing_filename(self):
        with pytest.raises(ValidationError, match="Filename cannot be empty"):
            validate_image_file(image(name=''))


class TestValidateUploadBatch:

    def test_exactly_max_files(self):
        validate_upload_batch([image() for _ in range(10)])

    def test_too_many_files(self):
        with pytest.raises(ValidationError, match="more than 10"):
            validate_upload_batch([image() for _ in range(11)])

    def test_checks_every_file(self):
        with pytest.raises(ValidationError, match="b.txt"):
            validate_upload_batch([image(), image('b.txt', content_type='text/plain')])


class TestValidatePage:

    def test_valid(self):
        validate_page(1, 10)

    @pytest.mark.parametrize('page, limit', [(0, 10), (1, 0), (1, 101), (-1, 5)])
    def test_invalid(self, page, limit):
        with pytest.raises(ValidationError):
            validate_page(page, limit)
