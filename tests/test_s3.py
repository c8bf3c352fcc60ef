import pytest
from botocore.exceptions import ClientError

from app.schemas.upload import ImageBucket, is_valid_image_url
from app.services import s3
from app.services.errors import StorageUploadError


class DummyS3Client:
    """Records put/delete calls in place of a boto3 S3 client."""

    def __init__(self):
        self.puts: list[dict] = []
        self.deletes: list[tuple[str, str]] = []
        self.fail = False

    def put_object(self, **kwargs):
        if self.fail:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.puts.append(kwargs)
        return {}

    def delete_object(self, Bucket, Key):
        self.deletes.append((Bucket, Key))
        return {}


@pytest.fixture
def dummy_client(monkeypatch):
    client = DummyS3Client()
    monkeypatch.setattr(s3.boto3, "client", lambda *args, **kwargs: client)
    monkeypatch.setattr(s3.settings, "s3_public_base_url", "")
    return client


@pytest.mark.asyncio
async def test_upload_returns_public_url(dummy_client):
    service = s3.S3Service()

    url = await service.upload_image(b"png-bytes", "Cover.PNG", content_type="image/png")

    put = dummy_client.puts[0]
    assert put["Bucket"] == s3.settings.s3_project_images_bucket
    assert put["Key"].endswith(".png")
    assert put["CacheControl"] == "max-age=3600"
    assert put["ContentType"] == "image/png"
    assert url == f"https://{put['Bucket']}.s3.{s3.settings.aws_region}.amazonaws.com/{put['Key']}"


@pytest.mark.asyncio
async def test_upload_to_content_bucket_with_public_base(dummy_client, monkeypatch):
    monkeypatch.setattr(s3.settings, "s3_public_base_url", "https://cdn.example.com/")
    service = s3.S3Service()

    url = await service.upload_image(b"x", "inline.webp", bucket=ImageBucket.CONTENT)

    key = dummy_client.puts[0]["Key"]
    assert url == f"https://cdn.example.com/{s3.settings.s3_content_images_bucket}/{key}"
    assert service.parse_url(url) == (s3.settings.s3_content_images_bucket, key)


@pytest.mark.asyncio
async def test_upload_failure_raises(dummy_client):
    dummy_client.fail = True

    with pytest.raises(StorageUploadError):
        await s3.S3Service().upload_image(b"x", "a.jpg")


@pytest.mark.asyncio
async def test_delete_by_url(dummy_client):
    service = s3.S3Service()
    url = await service.upload_image(b"x", "a.gif")

    assert await service.delete_image(url) is True
    assert dummy_client.deletes == [(dummy_client.puts[0]["Bucket"], dummy_client.puts[0]["Key"])]


@pytest.mark.asyncio
async def test_delete_foreign_url_is_noop(dummy_client):
    assert await s3.S3Service().delete_image("https://elsewhere.example.com/a.png") is False
    assert dummy_client.deletes == []


def test_object_keys_are_unique():
    keys = {s3.S3Service.object_key("photo.jpeg") for _ in range(20)}
    assert len(keys) == 20
    assert all(key.endswith(".jpeg") for key in keys)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://cdn.example.com/a.png", True),
        ("http://localhost:9000/a.png", True),
        ("data:image/png;base64,AAAA", True),
        ("ftp://example.com/a.png", False),
        ("/relative/a.png", False),
        ("", False),
    ],
)
def test_is_valid_image_url(url, expected):
    assert is_valid_image_url(url) is expected
