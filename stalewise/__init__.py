from stalewise._async._accessors import (
    AsyncBaseAccessor as AsyncBaseAccessor,
    AsyncFileAccessor as AsyncFileAccessor,
    AsyncInMemoryAccessor as AsyncInMemoryAccessor,
)
from stalewise._async._handler import AsyncStaticHandler as AsyncStaticHandler
from stalewise._async._validators import (
    AsyncForcedCache as AsyncForcedCache,
    AsyncHashValidator as AsyncHashValidator,
    AsyncTimestampValidator as AsyncTimestampValidator,
)
from stalewise._core._headers import Headers as Headers
from stalewise._core._outcomes import (
    Fresh as Fresh,
    Unchanged as Unchanged,
    ValidationOutcome as ValidationOutcome,
)
from stalewise._core.models import (
    CacheDirective as CacheDirective,
    ConditionalRequest as ConditionalRequest,
    Request as Request,
    Response as Response,
    StoredResource as StoredResource,
)
from stalewise._exceptions import (
    MalformedConditionalHeader as MalformedConditionalHeader,
    ResourceError as ResourceError,
    ResourceNotFound as ResourceNotFound,
    ResourceReadError as ResourceReadError,
    StalewiseError as StalewiseError,
)
from stalewise._policies import RoutePolicy as RoutePolicy, ValidatorKind as ValidatorKind
from stalewise._sync._accessors import (
    BaseAccessor as BaseAccessor,
    FileAccessor as FileAccessor,
    InMemoryAccessor as InMemoryAccessor,
)
from stalewise._sync._handler import StaticHandler as StaticHandler
from stalewise._sync._validators import (
    ForcedCache as ForcedCache,
    HashValidator as HashValidator,
    TimestampValidator as TimestampValidator,
)
from stalewise.config import Config as Config, get_default_config as get_default_config

__version__ = "0.1.0"

__all__ = (
    ## Outcomes
    "Fresh",
    "Unchanged",
    "ValidationOutcome",
    ## Models
    "CacheDirective",
    "ConditionalRequest",
    "Request",
    "Response",
    "StoredResource",
    ## Headers
    "Headers",
    ## Accessors
    "AsyncBaseAccessor",
    "AsyncFileAccessor",
    "AsyncInMemoryAccessor",
    "BaseAccessor",
    "FileAccessor",
    "InMemoryAccessor",
    ## Validators
    "AsyncForcedCache",
    "AsyncTimestampValidator",
    "AsyncHashValidator",
    "ForcedCache",
    "TimestampValidator",
    "HashValidator",
    ## Handlers
    "AsyncStaticHandler",
    "StaticHandler",
    ## Policies
    "RoutePolicy",
    "ValidatorKind",
    ## Errors
    "StalewiseError",
    "ResourceError",
    "ResourceNotFound",
    "ResourceReadError",
    "MalformedConditionalHeader",
    ## Configuration
    "Config",
    "get_default_config",
)
