"""Tests for media key layout and ownership."""

import pytest
from botocore.exceptions import ClientError

from scooterbooter.core.errors import Forbidden, NotEnabled, Unavailable, ValidationError
from scooterbooter.services.media import MediaService, S3MediaStore


async def test_upload_url_uses_owner_prefixes(media_store) -> None:
    media = MediaService(media_store, upload_ttl=60)

    post_upload = await media.upload_url("u1", None)
    avatar_upload = await media.upload_url("u1", "image/png", avatar=True)

    assert post_upload["key"].startswith("u/u1/")
    assert avatar_upload["key"].startswith("a/u1/")
    assert post_upload["url"].endswith("expires=60")
    assert media_store.presigned == [
        (post_upload["key"], "application/octet-stream"),
        (avatar_upload["key"], "image/png"),
    ]


async def test_delete_owned_checks_prefix(media_store) -> None:
    media = MediaService(media_store)
    assert await media.delete_owned("u1", "a/u1/avatar") == "a/u1/avatar"
    with pytest.raises(Forbidden):
        await media.delete_owned("u1", "u/u2/photo")
    with pytest.raises(ValidationError):
        await media.delete_owned("u1", "")
    assert media_store.deleted == ["a/u1/avatar"]


async def test_without_store_uploads_are_not_enabled() -> None:
    media = MediaService(None)
    with pytest.raises(NotEnabled):
        await media.upload_url("u1", None)
    await media.discard("u/u1/x")


async def test_s3_store_presigns_and_maps_errors(mocker) -> None:
    client = mocker.Mock()
    client.generate_presigned_url.return_value = "https://s3.test/put"
    client.delete_object.side_effect = ClientError({"Error": {"Code": "500"}}, "DeleteObject")
    store = S3MediaStore("bucket", region="us-east-1", client=client)

    assert await store.presign_put("u/a/1", "image/jpeg", 60) == "https://s3.test/put"
    client.generate_presigned_url.assert_called_once_with(
        ClientMethod="put_object",
        Params={"Bucket": "bucket", "Key": "u/a/1", "ContentType": "image/jpeg"},
        ExpiresIn=60,
    )
    with pytest.raises(Unavailable):
        await store.delete("u/a/1")
