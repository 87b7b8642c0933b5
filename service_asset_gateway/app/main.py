"""
Asset gateway service: cache-aside HTTP front for the object store.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import MethodNotAllowedError

from .adapters.factory import build_cache_store, build_object_store
from .adapters.object_store import ObjectStore
from .caching.background import CacheJobQueue
from .caching.cache_aside import CacheAsideAccessor
from .caching.cache_store import CacheStore
from .domain.auth_guard import AuthGuard
from .domain.conditional import ConditionalRequestMiddleware
from .domain.keys import validate_key
from .domain.payload import MultipartPayload, read_payload

SERVICE_NAME = "asset-gateway"
ALLOWED_METHODS = ("GET", "HEAD", "PUT", "DELETE")


class AssetGatewayService(BaseService):
    """Gateway routing object requests through auth, conditional handling and cache-aside access.

    Stores and configuration are injected at construction; when omitted they
    are built from the environment.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        object_store: Optional[ObjectStore] = None,
        cache_store: Optional[CacheStore] = None,
    ):
        super().__init__(SERVICE_NAME, 8000, config=config)
        self.object_store = object_store if object_store is not None else build_object_store(self.config)
        self.cache_store = cache_store if cache_store is not None else build_cache_store(self.config)
        self.cache_jobs = CacheJobQueue(
            workers=self.config.cache_workers,
            max_queue_size=self.config.cache_queue_size,
            metrics=self.metrics,
        )
        self.accessor = CacheAsideAccessor(
            self.object_store,
            self.cache_store,
            self.cache_jobs,
            write_policy=self.config.cache_write_policy,
            metrics=self.metrics,
        )
        self.auth_guard = AuthGuard(self.config.auth_secret, self.config.auth_header)
        self.conditional = ConditionalRequestMiddleware(
            cache_control=self.config.cache_control,
            cdn_cache_control=self.config.cdn_cache_control,
        )

        if not self.config.auth_secret:
            self.logger.warning("No auth secret configured; all mutating requests will be rejected")

        self._setup_object_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    async def startup(self) -> None:
        await self.cache_jobs.start()

    async def shutdown(self) -> None:
        await self.cache_jobs.stop()
        await self.cache_store.close()
        await self.object_store.close()

    async def _check_dependencies(self) -> Dict[str, str]:
        dependencies = {}
        for name, store in (("object_store", self.object_store), ("cache_store", self.cache_store)):
            try:
                dependencies[name] = "ok" if await store.ping() else "unavailable"
            except Exception as exc:
                self.logger.warning("Dependency check failed", dependency=name, error=str(exc))
                dependencies[name] = "error"
        return dependencies

    def _setup_object_routes(self):
        """Set up object routes. Registered after /health and /metrics so those take precedence."""

        @self.app.api_route("/{key:path}", methods=["GET", "HEAD"])
        async def read_object(key: str, request: Request) -> Response:
            """Serve an object from the cache or the object store."""
            key = validate_key(key)
            result = await self.accessor.read(key)
            return self.conditional.render(request, key, result)

        @self.app.put("/{key:path}", dependencies=[Depends(self.auth_guard)])
        async def put_object(key: str, request: Request) -> Any:
            """Store the request body (raw or multipart file field) under key."""
            key = validate_key(key)
            payload = await read_payload(request, self.config.multipart_field)
            await self.accessor.write(key, payload)

            if isinstance(payload, MultipartPayload):
                return Response(status_code=200)
            return {"key": key, "status": "stored", "size": len(payload.data)}

        @self.app.delete("/{key:path}", dependencies=[Depends(self.auth_guard)])
        async def delete_object(key: str) -> Dict[str, str]:
            """Delete an object from both stores."""
            key = validate_key(key)
            await self.accessor.delete(key)
            return {"key": key, "status": "deleted"}

        async def unsupported_method(request: Request) -> Response:
            raise MethodNotAllowedError(request.method, ALLOWED_METHODS)

        # Starlette routes with no method list accept every verb
        self.app.add_route("/{key:path}", unsupported_method, include_in_schema=False)


def create_app():
    """Create FastAPI application."""
    service = AssetGatewayService()
    return service.app


if __name__ == "__main__":
    service = AssetGatewayService()
    service.run()
