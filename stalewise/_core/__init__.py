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
    StoredResource as StoredResource,
    Response as Response,
)
