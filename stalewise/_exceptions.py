__all__ = (
    "StalewiseError",
    "ResourceError",
    "ResourceNotFound",
    "ResourceReadError",
    "MalformedConditionalHeader",
)


class StalewiseError(Exception): ...


class ResourceError(StalewiseError):
    def __init__(self, resource_id: str, message: str | None = None) -> None:
        super().__init__(message or resource_id)
        self.resource_id = resource_id


class ResourceNotFound(ResourceError): ...


class ResourceReadError(ResourceError): ...


class MalformedConditionalHeader(StalewiseError):
    def __init__(self, header: str, value: str) -> None:
        super().__init__(f"Malformed {header} header: {value!r}")
        self.header = header
        self.value = value
