import azure.functions as func

from src.shared.logging_utils import info as log_info
from src.workflows.cleanup import sweep_expired_memories


bp = func.Blueprint()


@bp.function_name(name="cleanup_web_memory")
@bp.timer_trigger(arg_name="timer", schedule="0 30 3 * * *", run_on_startup=False, use_monitor=True)
def cleanup_web_memory(timer: func.TimerRequest) -> None:
    if timer.past_due:
        log_info(None, "cleanup:timer_past_due")
    sweep_expired_memories()
