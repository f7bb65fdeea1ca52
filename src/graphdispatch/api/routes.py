"""Delta-notifier and manual dispatch endpoints."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from graphdispatch.adapters.sparql import parse_delta_payload
from graphdispatch.app import DispatcherService  # noqa: TC001

if TYPE_CHECKING:
    from graphdispatch.domain.model import Changeset

log = getLogger(__name__)

router = APIRouter()

GREETING = "Hello from verenigingen-graph-dispatcher-service"


def get_service(request: Request) -> DispatcherService:
    return request.app.state.service


Service = Annotated[DispatcherService, Depends(get_service)]


async def _read_changesets(request: Request) -> list[Changeset]:
    try:
        payload = await request.json()
        return parse_delta_payload(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        log.warning("Rejected a delta message that is not JSON: %s", exc)
        detail = "Body must be a JSON list of changesets"
        raise HTTPException(status_code=400, detail=detail) from exc
    except ValidationError as exc:
        log.warning("Rejected a malformed delta message: %s", exc)
        detail = exc.errors(include_url=False, include_context=False)
        raise HTTPException(status_code=400, detail=detail) from exc


@router.get("/", response_class=PlainTextResponse)
async def hello() -> str:
    return GREETING


@router.post("/delta-inserts")
async def delta_inserts(
    request: Request, background: BackgroundTasks, service: Service
) -> Response:
    changesets = await _read_changesets(request)
    # The notifier only needs the request closed; results go to the log.
    background.add_task(service.ingest_inserts, changesets)
    return Response(status_code=200)


@router.post("/delta-deletes")
async def delta_deletes(
    request: Request, background: BackgroundTasks, service: Service
) -> Response:
    changesets = await _read_changesets(request)
    background.add_task(service.ingest_deletes, changesets)
    return Response(status_code=200)


@router.post("/manual-dispatch")
async def manual_dispatch(background: BackgroundTasks, service: Service) -> Response:
    background.add_task(service.manual_dispatch)
    return Response(status_code=200)
