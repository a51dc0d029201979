import azure.functions as func

from src.shared.logging_utils import info as log_info, error as log_error
from src.workflows.post_web_memory import handle_post_created


bp = func.Blueprint()


def handle_post_documents(documents) -> int:
    """Feed changed post documents to the post-created handler; returns jobs enqueued.

    One bad document is logged and skipped so the rest of the batch still flows.
    """
    enqueued = 0
    for doc in documents or []:
        post = dict(doc)
        post_id = post.get("id")
        if not post_id:
            continue
        try:
            if handle_post_created(post_id, post):
                enqueued += 1
        except Exception as exc:
            log_error(post_id, "post_event:handler_failed", source="change_feed", error=str(exc))
    log_info(None, "post_event:change_feed_batch", documents=len(documents or []), enqueued=enqueued)
    return enqueued


@bp.function_name(name="post_created_change_feed")
@bp.cosmos_db_trigger(
    arg_name="documents",
    connection="COSMOS_DB_CONNECTION_STRING",
    database_name="%COSMOS_DB_NAME%",
    container_name="%COSMOS_DB_CONTAINER_POSTS%",
    lease_container_name="leases",
    create_lease_container_if_not_exists=True,
)
def post_created_change_feed(documents: func.DocumentList) -> None:
    handle_post_documents(documents)
