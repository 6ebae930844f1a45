"""Single-endpoint typed dispatch for read-only operations."""

from fastapi import APIRouter, Body, Depends

from ..core.response import PlugstoreResponse
from ..schemas.dispatch import DispatchRequest
from ..services.dispatch_service import OperationDispatcher
from .dependencies import get_dispatcher

router = APIRouter(prefix="/dispatch", tags=["dispatch"])


@router.post("", summary="Run a read-only operation", description="Body: {'op': <operation>, ...params}.")
async def dispatch_operation(
    request: DispatchRequest = Body(...),
    dispatcher: OperationDispatcher = Depends(get_dispatcher),
):
    return PlugstoreResponse.success(await dispatcher.dispatch(request))
