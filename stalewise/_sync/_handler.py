from __future__ import annotations

import logging

from typing_extensions import assert_never

from stalewise._sync._accessors import BaseAccessor
from stalewise._sync._validators import ForcedCache, HashValidator, TimestampValidator
from stalewise._core._headers import Headers
from stalewise._core._outcomes import Fresh, Unchanged, ValidationOutcome
from stalewise._core.models import BytesIterable, ConditionalRequest, Request, Response, make_error_response
from stalewise._exceptions import ResourceNotFound, ResourceReadError
from stalewise._policies import RoutePolicy
from stalewise.config import Config

logger = logging.getLogger("stalewise.handler")

__all__ = ("StaticHandler", "ALLOWED_METHODS")

ALLOWED_METHODS = ("GET", "HEAD")


class StaticHandler:
    """
    Serves one route's resources according to its RoutePolicy.

    This class is independent of any web framework and works only with internal
    models: it turns a Request and a resource id into a Response whose body is
    still an unread stream. The caller owns that stream and must either consume
    it or close it.

    Status codes:
        - 200 with the full body when the resource has to be sent
        - 304 with an empty body when the client's copy is still valid
        - 404 when the resource does not exist
        - 405 for methods other than GET and HEAD
        - 500 when reading the resource fails before the response starts

    Args:
        accessor: Where the resources are read from.
        policy: Forced-cache directive and validator for the route. Defaults to
            RoutePolicy(), which serves without any caching headers.
        config: Digest settings for the ETag validator. Defaults to the environment
            based configuration.
    """

    def __init__(
        self,
        accessor: BaseAccessor,
        policy: RoutePolicy | None = None,
        config: Config | None = None,
    ) -> None:
        self.accessor = accessor
        self.policy = policy if policy is not None else RoutePolicy()

        self._forced_cache: ForcedCache | None = None
        if self.policy.directive is not None:
            self._forced_cache = ForcedCache(accessor, self.policy.directive)

        self._validator: TimestampValidator | HashValidator | None = None
        if self.policy.validator == "last-modified":
            self._validator = TimestampValidator(accessor)
        elif self.policy.validator == "etag":
            self._validator = HashValidator.from_config(accessor, config)

    def handle(self, request: Request, resource_id: str) -> Response:
        method = request.method.upper()
        if method not in ALLOWED_METHODS:
            logger.debug("Method not allowed: method=%s resource=%s", method, resource_id)
            return make_error_response(405, "Method Not Allowed", {"Allow": ", ".join(ALLOWED_METHODS)})

        conditional = ConditionalRequest.from_headers(request.headers)

        try:
            outcome = self._run_policy(resource_id, conditional)
        except ResourceNotFound:
            logger.info("Resource not found: resource=%s", resource_id)
            return make_error_response(404, "Not Found")
        except ResourceReadError:
            logger.error("Failed to read resource: resource=%s", resource_id, exc_info=True)
            return make_error_response(500, "Internal Server Error")

        response = self._build_response(outcome)

        if method == "HEAD":
            response.close()
            response.stream = BytesIterable()

        logger.info(
            "Resource served: method=%s resource=%s status=%d",
            method,
            resource_id,
            response.status_code,
        )
        return response

    def _run_policy(self, resource_id: str, conditional: ConditionalRequest) -> ValidationOutcome:
        if self._validator is None:
            if self._forced_cache is not None:
                return self._forced_cache.apply(resource_id)
            stream = self.accessor.read_body(resource_id)
            return Fresh(stream=stream, content_type=self.accessor.content_type(resource_id))

        outcome = self._validator.validate(resource_id, conditional)
        if self._forced_cache is not None:
            outcome.headers.update(self._forced_cache.headers())
        return outcome

    def _build_response(self, outcome: ValidationOutcome) -> Response:
        if isinstance(outcome, Unchanged):
            return Response(status_code=304, headers=outcome.headers)
        elif isinstance(outcome, Fresh):
            headers = Headers({"Content-Type": outcome.content_type})
            headers.update(outcome.headers)
            if outcome.content_length is not None:
                headers["Content-Length"] = str(outcome.content_length)
            return Response(status_code=200, headers=headers, stream=outcome.stream)
        else:
            assert_never(outcome)
