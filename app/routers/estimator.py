from dataclasses import dataclass

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from fastapi.responses import JSONResponse

from ..core.config import settings
from ..core.metrics import record_estimate
from ..core.security import require_api_key, rate_limit
from ..data.base import EstimatorState, ShowingResult
from ..models.base import CompletionClient
from ..schemas import (
    EstimateResponse,
    FieldUpdate,
    FormInputModel,
    FormView,
    ValidationErrorResponse,
)
from ..services.estimator_service import (
    EstimatorBusyError,
    EstimatorFormController,
    UnknownFieldError,
    completion_client,
)
from ..services.session_store import SessionStore

router = APIRouter(dependencies=[Depends(require_api_key)])

SESSION_HEADER = "X-Session-Id"

_client: CompletionClient | None = None
_store: SessionStore | None = None

# Async so they resolve on the event loop, never in the threadpool
async def get_completion_client() -> CompletionClient:
    # One client per process; the SDK keeps its own connection pool
    global _client
    if _client is None:
        _client = completion_client()
    return _client

async def get_session_store(client: CompletionClient = Depends(get_completion_client)) -> SessionStore:
    global _store
    if _store is None:
        _store = SessionStore(
            client,
            maxsize=settings.SESSION_MAX,
            ttl=settings.SESSION_TTL_SECONDS,
        )
    return _store

@dataclass
class FormSession:
    session_id: str
    controller: EstimatorFormController

    def error(self, status_code: int, detail: str) -> HTTPException:
        return HTTPException(status_code=status_code, detail=detail, headers={SESSION_HEADER: self.session_id})

async def form_session(
    response: Response,
    x_session_id: str | None = Header(default=None, alias="x-session-id"),
    store: SessionStore = Depends(get_session_store),
) -> FormSession:
    session_id, controller = store.get(x_session_id)
    response.headers[SESSION_HEADER] = session_id
    return FormSession(session_id, controller)

def _record(state: EstimatorState) -> None:
    if isinstance(state, ShowingResult):
        record_estimate("success")
    elif state.errors:
        record_estimate("invalid")
    elif state.failure:
        record_estimate("failure")
    else:
        # reset while the request was out
        record_estimate("discarded")

@router.get("/form", response_model=FormView)
async def get_form(session: FormSession = Depends(form_session)):
    return FormView.from_controller(session.controller)

@router.patch("/form/fields/{name}", response_model=FormView)
async def update_field(name: str, body: FieldUpdate, session: FormSession = Depends(form_session)):
    try:
        session.controller.update_field(name, body.value)
    except UnknownFieldError:
        raise session.error(404, f"Unknown field: {name}")
    except EstimatorBusyError:
        raise session.error(409, "An estimate is already in progress")
    except ValueError:
        raise session.error(422, f"Invalid value for {name}: {body.value!r}")
    return FormView.from_controller(session.controller)

@router.post("/form/submit", response_model=FormView, dependencies=[Depends(rate_limit)])
async def submit_form(session: FormSession = Depends(form_session)):
    try:
        state = await session.controller.submit()
    except EstimatorBusyError:
        record_estimate("busy")
        raise session.error(409, "An estimate is already in progress")
    _record(state)
    return FormView.from_controller(session.controller)

@router.post("/form/reset", response_model=FormView)
async def reset_form(session: FormSession = Depends(form_session)):
    session.controller.reset()
    return FormView.from_controller(session.controller)

@router.post(
    "/estimate",
    response_model=EstimateResponse,
    responses={422: {"model": ValidationErrorResponse}, 502: {"description": "Completion provider failed"}},
    dependencies=[Depends(rate_limit)],
)
async def post_estimate(body: FormInputModel, client: CompletionClient = Depends(get_completion_client)):
    """Stateless variant: validate, estimate and answer in one round trip."""
    controller = EstimatorFormController(client, form=body.to_form())
    state = await controller.submit()
    _record(state)

    if isinstance(state, ShowingResult):
        return EstimateResponse.from_result(state.result)
    if state.errors:
        return JSONResponse(status_code=422, content=ValidationErrorResponse(errors=state.errors).model_dump())
    raise HTTPException(status_code=502, detail=state.failure)
