"""
Sample API - Per-request Context
=================================

What:  The object every middleware receives, plus the Proceed / Respond
       outcomes a middleware returns.
Why:   Middleware never gets a raw framework request or a `next` callback.
       It reads the context, optionally annotates it, and returns an
       explicit outcome, which turns the chain executor into a simple fold.
Who:   Built by the dispatch endpoint at request arrival, passed through the
       chain, discarded when the response is written. Never shared across
       requests.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from sample_api.exceptions import ResponseAlreadySentError
from sample_api.schemas.envelope import Envelope

DisconnectProbe = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity attached by check_token; read by check_role and controllers."""
    subject: str
    roles: tuple = ()
    claims: Mapping[str, Any] = field(default_factory=dict)

    def has_any_role(self, roles) -> bool:
        return bool(set(self.roles) & set(roles))


@dataclass
class ValidatedInput:
    """Parsed request parts a validator hands to the controller."""
    params: Any = None
    query: Any = None
    body: Any = None


@dataclass
class RequestContext:
    """
    Mutable per-request state.

    Attributes:
        method, path:    As received (path is relative to the API prefix)
        headers, query:  Raw request headers / query string values
        body:            Decoded JSON body, or None when the request had none
        params:          Named path parameters bound by the route table
        db:              Session for this request only
        user:            Set by check_token
        payload:         Set by a validator (ValidatedInput)
        state:           Free-form annotations for custom middleware
        is_disconnected: Optional probe used to cancel work for gone clients
    """
    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    params: Dict[str, str] = field(default_factory=dict)
    db: Optional[AsyncSession] = None
    request_id: str = ""
    user: Optional[AuthenticatedUser] = None
    payload: Optional[ValidatedInput] = None
    state: Dict[str, Any] = field(default_factory=dict)
    is_disconnected: Optional[DisconnectProbe] = None
    trace: List[str] = field(default_factory=list)
    _response: Optional[Envelope] = field(default=None, repr=False)

    @property
    def responded(self) -> bool:
        return self._response is not None

    @property
    def response(self) -> Optional[Envelope]:
        return self._response

    def write(self, envelope: Envelope) -> None:
        """Record the single response for this request."""
        if self._response is not None:
            raise ResponseAlreadySentError(
                f"A response was already written for {self.method} {self.path}"
            )
        self._response = envelope


@dataclass(frozen=True)
class Proceed:
    """
    Pass control to the next middleware.

    `context` replaces the current context for the rest of the chain; leave
    it None when the middleware only mutated the context in place.
    """
    context: Optional[RequestContext] = None


@dataclass(frozen=True)
class Respond:
    """Stop the chain and answer with `envelope`."""
    envelope: Envelope


Outcome = Union[Proceed, Respond]
Middleware = Callable[[RequestContext], Awaitable[Outcome]]
