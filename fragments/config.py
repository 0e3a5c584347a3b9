"""Configuration settings for the Fragments service."""

import os


# Presence of a region selects the AWS backends (DynamoDB + S3).
AWS_REGION = os.environ.get("AWS_REGION")

AWS_DYNAMODB_TABLE_NAME = os.environ.get("AWS_DYNAMODB_TABLE_NAME")

AWS_DYNAMODB_ENDPOINT_URL = os.environ.get("AWS_DYNAMODB_ENDPOINT_URL")

AWS_S3_BUCKET_NAME = os.environ.get("AWS_S3_BUCKET_NAME")

AWS_S3_ENDPOINT_URL = os.environ.get("AWS_S3_ENDPOINT_URL")

AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID")

AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY")

AWS_SESSION_TOKEN = os.environ.get("AWS_SESSION_TOKEN")

HTPASSWD_FILE = os.environ.get("HTPASSWD_FILE")

API_URL = os.environ.get("API_URL")

FRAGMENTS_HOST = os.environ.get("FRAGMENTS_HOST", "0.0.0.0")

FRAGMENTS_PORT = int(os.environ.get("FRAGMENTS_PORT", "8080"))

FRAGMENTS_VERSION = os.environ.get("FRAGMENTS_VERSION", "0.1.0")

MAX_BODY_BYTES = int(os.environ.get("MAX_BODY_BYTES", str(5 * 1024 * 1024)))
