from fastapi import FastAPI, Query
from typing import Optional
import logging

from catering.api.routes import cart, packages
from catering.events.web_observers import start as start_event_observers, get_events as get_web_events
from catering.utilities.config import DEBUG, DEFAULT_CURRENCY

# Logging
logger = logging.getLogger("catering_app")

app = FastAPI(title="Catering Package & Cart API", debug=DEBUG)

# Include routers
app.include_router(packages.router)
app.include_router(cart.router)


@app.on_event("startup")
def _startup_web_observers():
    """Register event bus subscribers for the web event feed when the app starts."""
    start_event_observers()
    logger.info("Web observers for cart and selection events started")


@app.get('/api/health')
def api_health():
    return {"status": "ok", "currency": DEFAULT_CURRENCY}


# -------------------- API: Event feed (polled by frontend) --------------------
@app.get('/api/events')
def api_events(
    since: Optional[int] = Query(default=None, description="Return events with id greater than this value")
):
    """
    Return recent selection and cart events (rejected toggles, saved/removed lines,
    failed migrations, discarded stale responses).

    Client polling strategy:
        1. First call without 'since' to load the current backlog.
        2. Store 'next_cursor' from the response.
        3. Subsequent polls: /api/events?since=<next_cursor>
    """
    return get_web_events(since)
