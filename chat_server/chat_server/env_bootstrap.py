"""
Optionally load environment variables from AWS Secrets Manager before Django
settings are loaded. Imported first by asgi.py so os.environ is populated before
chat_server.settings (and realtime.config) read it.

Nothing happens unless CHAT_SECRET_NAME is set (e.g. "chat-prod/server-secrets").
Uses setdefault so variables already in the environment override secret values.
"""
import json
import os

import boto3


def load_secrets_from_aws(secret_name: str, region: str) -> int:
    """Copy the secret's JSON keys into os.environ. Returns how many keys were read."""
    client = boto3.client("secretsmanager", region_name=region)
    response = client.get_secret_value(SecretId=secret_name)
    secret_str = response.get("SecretString")
    if not secret_str:
        raise RuntimeError(f"Secret {secret_name!r} has no SecretString")
    data = json.loads(secret_str)
    for key, value in data.items():
        if value is not None:
            os.environ.setdefault(key, str(value))
    return len(data)


_secret_name = os.environ.get("CHAT_SECRET_NAME", "").strip()
if _secret_name:
    load_secrets_from_aws(_secret_name, os.environ.get("AWS_REGION", "us-east-2"))
