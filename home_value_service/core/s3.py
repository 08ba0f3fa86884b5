# home_value_service/core/s3.py
import boto3

from home_value_service.core.config import Settings


def get_s3_client(settings: Settings):
    """
    Initializes and returns an S3 client.
    Conditionally configures the endpoint_url for local development with MinIO.
    """
    if settings.AWS_S3_ENDPOINT_URL:
        return boto3.client(
            "s3",
            endpoint_url=settings.AWS_S3_ENDPOINT_URL,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_S3_REGION,
        )
    # Otherwise, it will default to the standard AWS endpoint for production.
    return boto3.client(
        "s3",
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=settings.AWS_S3_REGION,
    )


def public_object_url(settings: Settings, key: str) -> str:
    """Build the public URL of an object in the configured bucket."""
    if settings.AWS_S3_ENDPOINT_URL:
        base = settings.AWS_S3_ENDPOINT_URL.rstrip("/")
        return f"{base}/{settings.AWS_S3_BUCKET_NAME}/{key}"
    bucket = settings.AWS_S3_BUCKET_NAME
    region = settings.AWS_S3_REGION
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"
