"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import HTMLResponse

from matchmaker.services.session_store import (
    ParticipantNotFoundError,
    ParticipantRemovalError,
)

if TYPE_CHECKING:
    from matchmaker.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


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


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Session {session_id} not found",
    )


@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(request: Request) -> dict[str, object]:
    """Return summaries of all sessions."""
    container: AppContainer = request.app.state.container
    sessions = container.admin_service.list_sessions()
    return {"count": len(sessions), "sessions": sessions}


@router.get("/sessions/{session_id}", dependencies=[Depends(require_admin)])
async def session_detail(session_id: str, request: Request) -> dict[str, object]:
    """Return the full session record."""
    container: AppContainer = request.app.state.container
    session = container.admin_service.get_session(session_id)
    if session is None:
        raise _not_found(session_id)
    return {"session": session}


@router.delete("/sessions/{session_id}", dependencies=[Depends(require_admin)])
async def delete_session(session_id: str, request: Request) -> dict[str, object]:
    """Delete a session and every participant's pointer to it."""
    container: AppContainer = request.app.state.container
    deleted = await container.admin_service.delete_session(session_id)
    if deleted is None:
        raise _not_found(session_id)
    return deleted


@router.delete(
    "/sessions/{session_id}/participants/{contact_id}",
    dependencies=[Depends(require_admin)],
)
async def remove_participant(
    session_id: str, contact_id: str, request: Request
) -> dict[str, object]:
    """Remove one participant from a session."""
    container: AppContainer = request.app.state.container
    try:
        removed = await container.admin_service.remove_participant(
            session_id, contact_id
        )
    except ParticipantNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    except ParticipantRemovalError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    if removed is None:
        raise _not_found(session_id)
    return removed


@router.get("/stats", dependencies=[Depends(require_admin)])
async def stats(request: Request) -> dict[str, object]:
    """Return aggregate session statistics."""
    container: AppContainer = request.app.state.container
    return {"stats": container.admin_service.stats()}


@router.get("/ui", response_class=HTMLResponse)
async def admin_ui() -> HTMLResponse:
    """Minimal admin UI that consumes the admin API."""
    return HTMLResponse(_ADMIN_UI_HTML)


_ADMIN_UI_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Matchmaker Admin</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      .row { margin-bottom: 1rem; }
      input { padding: 0.4rem 0.6rem; width: 320px; }
      button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      pre { background: #f6f6f6; padding: 1rem; overflow: auto; }
    </style>
  </head>
  <body>
    <h1>Matchmaker Admin</h1>
    <div class="row">
      <input id="token" type="password" placeholder="X-Admin-Token" />
    </div>
    <div class="row">
      <input id="session" placeholder="Session code" />
      <button onclick="call('GET', '/admin/sessions/' + sessionCode())">Open</button>
      <button onclick="call('DELETE', '/admin/sessions/' + sessionCode())">Delete</button>
    </div>
    <div class="row">
      <button onclick="call('GET', '/admin/sessions')">Sessions</button>
      <button onclick="call('GET', '/admin/stats')">Stats</button>
    </div>
    <pre id="output">Ready.</pre>
    <script>
      function sessionCode() {
        return document.getElementById('session').value.trim().toUpperCase();
      }
      async function call(method, path) {
        const token = document.getElementById('token').value;
        const output = document.getElementById('output');
        output.textContent = 'Loading...';
        const res = await fetch(path, {
          method,
          headers: { 'X-Admin-Token': token }
        });
        const data = await res.json().catch(() => ({}));
        output.textContent = res.ok
          ? JSON.stringify(data, null, 2)
          : 'Error: ' + res.status + ' ' + JSON.stringify(data);
      }
    </script>
  </body>
</html>
"""
