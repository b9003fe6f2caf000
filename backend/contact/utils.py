# contact/utils.py
import os
import secrets
import logging
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

SSM_PREFIX = "/kairostech/prod"


@lru_cache(maxsize=None)
def _ssm_client(region: str | None = None):
    return boto3.client("ssm", region_name=region or os.getenv("AWS_REGION") or "ca-central-1")


@lru_cache(maxsize=None)
def ssm_get(param_name: str, *, decrypt: bool = True, region: str | None = None) -> str | None:
    """Read one Parameter Store value; None when AWS is unreachable or the name is unknown."""
    try:
        resp = _ssm_client(region).get_parameter(Name=param_name, WithDecryption=decrypt)
    except (ClientError, BotoCoreError) as e:
        logger.warning("[ssm] get_parameter failed for %s: %s", param_name, e)
        return None
    return resp["Parameter"]["Value"]


def ssm_param(name: str) -> str:
    return f"{SSM_PREFIX}/{name}"


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def use_ssm() -> bool:
    return os.getenv("USE_SSM", "false").lower() == "true"


def getenv_or_ssm(env_name: str, ssm_path: str | None = None, *, decrypt: bool = True, default: str | None = None) -> str | None:
    """Blank values count as unset, so an empty env var still falls through to SSM."""
    value = _clean(os.getenv(env_name))
    if value is None and ssm_path and use_ssm():
        value = _clean(ssm_get(ssm_path, decrypt=decrypt))
    return value if value is not None else default

def getenv_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("[config] %s=%r is not an integer; using %s", name, raw, default)
        return default


def getenv_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("[config] %s=%r is not a number; using %s", name, raw, default)
        return default


def getenv_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def getenv_list(name: str) -> list[str]:
    raw = os.getenv(name) or ""
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_secret_key() -> str:
    """Key that signs the form timing token; every worker must share it."""
    key = getenv_or_ssm("SECRET_KEY", ssm_param("SECRET_KEY"))
    if key:
        return key
    # Tokens issued by another worker will not verify and get silently soft-rejected.
    logger.warning("[config] SECRET_KEY is not set; using a random per-process key")
    return secrets.token_hex(32)
