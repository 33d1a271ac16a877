import hmac
import os

import boto3

_secret_cache: dict[str, str] = {}


def get_secret(env_name: str) -> str:
    """環境変数に指定された ARN のシークレットを取得する（コンテナ内でキャッシュ）"""
    secret_arn = os.environ[env_name]
    if secret_arn not in _secret_cache:
        client = boto3.client("secretsmanager")
        response = client.get_secret_value(SecretId=secret_arn)
        _secret_cache[secret_arn] = response["SecretString"]
    return _secret_cache[secret_arn]


def verify_shared_secret(actual: str | None, expected: str) -> bool:
    """共有シークレットをタイミング安全に比較する"""
    if not actual:
        return False
    return hmac.compare_digest(actual, expected)
