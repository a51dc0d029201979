import azure.functions as func

from src.shared.logging_utils import info as log_info, error as log_error
from src.workflows.post_web_memory import extract_post_id, handle_post_created


bp = func.Blueprint()


def handle_post_event_body(raw_body: bytes) -> func.HttpResponse:
    post_id = extract_post_id(raw_body)
    if not post_id:
        text = raw_body.decode("utf-8", errors="replace") if raw_body else ""
        log_error(None, "post_event:missing_postId", rawSnippet=text[:200])
        # 200 so the event delivery system does not retry forever
        return func.HttpResponse("No postId found; nothing to do", status_code=200)

    log_info(post_id, "post_event:received", source="http")
    try:
        enqueued = handle_post_created(post_id)
    except Exception as exc:
        log_error(post_id, "post_event:handler_failed", error=str(exc))
        return func.HttpResponse("Internal Server Error", status_code=500)

    log_info(post_id, "post_event:handled", enqueued=enqueued)
    return func.HttpResponse("OK", status_code=200)


@bp.function_name(name="post_created_event")
@bp.route(route="{*path}", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def post_created_event(req: func.HttpRequest) -> func.HttpResponse:
    return handle_post_event_body(req.get_body() or b"")
