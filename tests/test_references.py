import pytest

from logokit.errors import InvalidEncodingError, InvalidReferenceError
from logokit.references import InlineDataRef, ObjectStoreRef, parse_image_reference


def test_s3_uri():
    ref = parse_image_reference("s3://kits/logos/acme.png")
    assert ref == ObjectStoreRef(bucket="kits", key="logos/acme.png")


def test_regional_s3_object_url():
    ref = parse_image_reference("https://kits.s3.us-east-1.amazonaws.com/logos/acme%20corp.png")
    assert ref == ObjectStoreRef(bucket="kits", key="logos/acme corp.png")


def test_global_s3_object_url_with_dotted_bucket():
    ref = parse_image_reference("https://my.kits.s3.amazonaws.com/logos/a.png")
    assert ref == ObjectStoreRef(bucket="my.kits", key="logos/a.png")


def test_data_url():
    ref = parse_image_reference("data:image/png;base64,iVBORw0KGgo=")
    assert ref == InlineDataRef(payload="iVBORw0KGgo=", media_type="image/png")


def test_local_upload_path():
    ref = parse_image_reference("/uploads/logos/acme.png")
    assert ref == ObjectStoreRef(bucket="uploads", key="logos/acme.png")


@pytest.mark.parametrize("value", [None, "", "   "])
def test_missing_reference_is_caller_misuse(value):
    with pytest.raises(InvalidReferenceError):
        parse_image_reference(value)


@pytest.mark.parametrize(
    "value",
    ["https://example.com/logo.png", "ftp://host/logo.png", "logo.png", "s3://bucket-only"],
)
def test_unrecognised_references(value):
    with pytest.raises(InvalidReferenceError):
        parse_image_reference(value)


def test_data_url_must_be_base64():
    with pytest.raises(InvalidEncodingError):
        parse_image_reference("data:image/png,rawbytes")


def test_data_url_must_declare_image_type():
    with pytest.raises(InvalidEncodingError):
        parse_image_reference("data:text/plain;base64,aGVsbG8=")


def test_empty_inline_payload():
    with pytest.raises(InvalidReferenceError):
        InlineDataRef(payload="", media_type="image/png")


def test_object_ref_needs_bucket_and_key():
    with pytest.raises(InvalidReferenceError):
        ObjectStoreRef(bucket="kits", key="")
