# =======================================================================================
# weblock/ui.py - Dashboard Page
# =======================================================================================
# Single page: lock status + toggle, RFID form, add-user form, users table,
# access log feed and toasts. All data arrives over the /ws session.
from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_dashboard(request: Request, title: str = "SecureWebLock"):
    """Render the dashboard template."""
    return templates.TemplateResponse(request, "dashboard.html", {"title": title})
