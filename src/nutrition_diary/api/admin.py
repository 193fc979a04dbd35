"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from nutrition_diary.domain.coaching import CoachRequest, CoachRequestStatus
from nutrition_diary.errors import CoachRequestNotFoundError
from nutrition_diary.services.dates import today_in

if TYPE_CHECKING:
    from nutrition_diary.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


class CoachRequestUpdate(BaseModel):
    """Body of a coach request status change."""

    status: CoachRequestStatus


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/users", dependencies=[Depends(require_admin)])
async def list_users(request: Request) -> dict[str, object]:
    """Return a list of users with entry counts."""
    container: AppContainer = request.app.state.container
    return {"users": container.admin_service.list_users()}


@router.get("/users/{user_id}", dependencies=[Depends(require_admin)])
async def user_detail(user_id: UUID, request: Request) -> dict[str, object]:
    """Return recent entries and goals of a user."""
    container: AppContainer = request.app.state.container
    detail = container.admin_service.get_user_detail(user_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return detail


@router.get("/coach-requests", dependencies=[Depends(require_admin)])
async def list_coach_requests(
    request: Request,
    status_filter: CoachRequestStatus | None = Query(default=None, alias="status"),
    limit: int = 20,
) -> dict[str, object]:
    """Return the newest coach requests, optionally filtered by status."""
    container: AppContainer = request.app.state.container
    requests = container.coach_request_service.list_requests(status_filter, limit)
    return {"requests": [_serialize_request(item) for item in requests]}


@router.patch("/coach-requests/{request_id}", dependencies=[Depends(require_admin)])
async def update_coach_request(
    request_id: UUID, body: CoachRequestUpdate, request: Request
) -> dict[str, object]:
    """Change the status of a coach request."""
    container: AppContainer = request.app.state.container
    try:
        updated = container.coach_request_service.set_status(request_id, body.status)
    except CoachRequestNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    return _serialize_request(updated)


@router.get("/usage", dependencies=[Depends(require_admin)])
async def usage_summary(request: Request) -> dict[str, object]:
    """Return today's usage summary in the reference timezone."""
    container: AppContainer = request.app.state.container
    timezone_name = container.settings.reference_timezone
    return container.usage_service.daily_summary(
        today_in(timezone_name), timezone_name
    )


@router.get("/ui", response_class=HTMLResponse)
async def admin_ui() -> HTMLResponse:
    """Minimal admin UI that consumes the admin API."""
    return HTMLResponse(_ADMIN_UI_HTML)


def _serialize_request(item: CoachRequest) -> dict[str, object]:
    return {
        "id": str(item.id),
        "user_id": str(item.user_id),
        "telegram_user_id": item.telegram_user_id,
        "status": item.status.value,
        "created_at": item.created_at.isoformat(),
        "answers": {
            "goal": item.answers.goal,
            "constraints": item.answers.constraints,
            "stats": item.answers.stats,
            "contact": item.answers.contact,
        },
    }


_ADMIN_UI_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Food Diary Admin</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      h1 { margin-bottom: 0.5rem; }
      .row { margin-bottom: 1rem; }
      input { padding: 0.4rem 0.6rem; width: 320px; }
      button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      pre { background: #f6f6f6; padding: 1rem; overflow: auto; }
    </style>
  </head>
  <body>
    <h1>Food Diary Admin</h1>
    <div class="row">
      <label>Admin token</label><br />
      <input id="token" type="password" placeholder="X-Admin-Token" />
    </div>
    <div class="row">
      <button onclick="loadEndpoint('/admin/users')">Users</button>
      <button onclick="loadEndpoint('/admin/coach-requests?status=new')">
        New coach requests
      </button>
      <button onclick="loadEndpoint('/admin/usage')">Usage today</button>
    </div>
    <pre id="output">Ready.</pre>
    <script>
      async function loadEndpoint(path) {
        const token = document.getElementById('token').value;
        const output = document.getElementById('output');
        output.textContent = 'Loading...';
        const res = await fetch(path, {
          headers: { 'X-Admin-Token': token }
        });
        if (!res.ok) {
          output.textContent = 'Error: ' + res.status;
          return;
        }
        const data = await res.json();
        output.textContent = JSON.stringify(data, null, 2);
      }
    </script>
  </body>
</html>
"""
