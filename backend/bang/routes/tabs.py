"""Tab group launch route."""
import html

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from bang.database import get_db
from bang.dependencies import get_current_user
from bang.models.user import User
from bang.services import store
from bang.services.responses import NO_STORE, js_string

router = APIRouter(prefix="/tabs", tags=["tabs"])


@router.get("/{tab_id}/launch", response_class=HTMLResponse)
async def launch_tab(
    tab_id: int,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_current_user),
):
    """Open every item of one of the user's tab groups in a new window."""
    if user is None:
        raise HTTPException(status_code=404, detail="Tab not found")
    tab = await store.get_tab_with_items(db, user.id, tab_id)
    if not tab:
        raise HTTPException(status_code=404, detail="Tab not found")

    links = "".join(
        f'<li><a href="{html.escape(item.url, quote=True)}" target="_blank" rel="noopener">'
        f"{html.escape(item.title or item.url)}</a></li>"
        for item in tab.items
    )
    urls = ",".join(js_string(item.url) for item in tab.items)
    content = (
        "<!DOCTYPE html>\n"
        f'<html><head><meta charset="utf-8"><title>{html.escape(tab.title or tab.trigger)}</title></head>'
        f"<body><h1>{html.escape(tab.title or tab.trigger)}</h1><ul>{links}</ul>"
        f"<script>[{urls}].forEach(function (url) {{ window.open(url, '_blank'); }});</script>"
        "</body></html>"
    )
    return HTMLResponse(content=content, headers={"Cache-Control": NO_STORE})
