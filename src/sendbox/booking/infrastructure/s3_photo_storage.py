import os

import boto3

from sendbox.booking.domain.gateway import PackagePhoto, PackagePhotoStorage
from sendbox.booking.domain.value_object import BookingId

_EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


class S3PackagePhotoStorage(PackagePhotoStorage):
    """荷物写真を S3 に保存する"""

    def __init__(self, bucket_name: str | None = None) -> None:
        self.bucket_name = bucket_name or os.getenv("PHOTO_BUCKET_NAME")
        self.s3 = boto3.client("s3")

    def upload(self, booking_id: BookingId, index: int, photo: PackagePhoto) -> str:
        extension = _EXTENSIONS.get(photo.content_type, "bin")
        key = f"bookings/{booking_id}/package_{index}.{extension}"
        self.s3.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=photo.content,
            ContentType=photo.content_type,
        )
        return f"s3://{self.bucket_name}/{key}"
