import azure.functions as func

from src.shared.logging_utils import info as log_info
from src.workflows.post_web_memory import PostWebMemoryWorker


bp = func.Blueprint()


@bp.function_name(name="process_web_memory_jobs")
@bp.timer_trigger(arg_name="timer", schedule="0 */5 * * * *", run_on_startup=False, use_monitor=True)
async def process_web_memory_jobs(timer: func.TimerRequest) -> None:
    if timer.past_due:
        log_info(None, "worker:timer_past_due")
    # One job per tick keeps a single browser session alive at a time
    result = await PostWebMemoryWorker().process_next_job()
    if result is not None:
        log_info(result.postId, "worker:tick_done", **result.model_dump(exclude={"postId"}))
