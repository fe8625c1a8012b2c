"""
Page view tracking for public article routes.

Attach `track_page_view` as a route dependency. Request details are captured
while the request is live; recording runs as a background task after the
response has been sent, so it never delays or fails the page.
"""

from fastapi import BackgroundTasks, Depends, Request

from src.services.analytics import PageViewContext, ViewTracker
from src.services.service_factory import get_view_tracker
from src.utils.request_utils import get_client_ip


def capture_page_view(request: Request) -> PageViewContext:
    """Snapshot the request fields needed to record a page view."""
    headers = request.headers
    return PageViewContext(
        slug=request.path_params.get("slug"),
        path=request.url.path,
        raw_ip=get_client_ip(request),
        user_agent=headers.get("user-agent"),
        referrer=headers.get("referer") or headers.get("referrer"),
    )


async def track_page_view(
    request: Request,
    background_tasks: BackgroundTasks,
    view_tracker: ViewTracker = Depends(get_view_tracker),
) -> None:
    """
    Schedule a page view to be recorded once the response is sent.
    """
    context = capture_page_view(request)
    if not context.slug:
        return

    background_tasks.add_task(view_tracker.record_view, context)
