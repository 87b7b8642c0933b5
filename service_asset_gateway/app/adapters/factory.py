"""
Build store adapters from service configuration.
"""

from shared.config import BaseConfig
from shared.logging import get_logger

from ..caching.cache_store import CacheStore, InMemoryCacheStore
from ..caching.redis_cache import RedisCacheStore
from .object_store import ObjectStore

logger = get_logger("asset-gateway.factory")


def build_object_store(config: BaseConfig) -> ObjectStore:
    backend = config.object_store_backend

    if backend == "local":
        from .local_object_store import LocalObjectStore

        logger.info("Using object store backend", backend="local", path=config.object_store_path)
        return LocalObjectStore(config.object_store_path)

    if backend == "s3":
        from .s3_object_store import S3ObjectStore

        logger.info("Using object store backend", backend="s3", bucket=config.s3_bucket)
        return S3ObjectStore(
            bucket=config.s3_bucket,
            region=config.s3_region,
            access_key_id=config.s3_access_key_id,
            secret_access_key=config.s3_secret_access_key,
            endpoint_url=config.s3_endpoint_url,
        )

    raise ValueError(f"Unsupported object store backend: {backend}")


def build_cache_store(config: BaseConfig) -> CacheStore:
    backend = config.cache_backend

    if backend == "redis":
        logger.info("Using cache backend", backend="redis")
        return RedisCacheStore(config.redis_url, key_prefix=config.cache_key_prefix)

    if backend == "memory":
        logger.info("Using cache backend", backend="memory")
        return InMemoryCacheStore()

    raise ValueError(f"Unsupported cache backend: {backend}")
