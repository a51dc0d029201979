import os
import logging
import azure.functions as func

from src.function_blueprints.http_post_created import bp as http_post_created_bp
from src.function_blueprints.cosmos_post_created import bp as cosmos_post_created_bp
from src.function_blueprints.timer_process_memory_jobs import bp as process_memory_jobs_bp
from src.function_blueprints.timer_cleanup_web_memory import bp as cleanup_web_memory_bp

app = func.FunctionApp()


def _configure_logging() -> None:
    lvl = (os.getenv("AZURE_SDK_LOG_LEVEL") or "").upper()
    if lvl:
        level = getattr(logging, lvl, logging.INFO)
        logging.getLogger("azure").setLevel(level)
        logging.getLogger("azure.cosmos").setLevel(level)
    logging.getLogger("webmemory").setLevel(logging.INFO)


_configure_logging()

app.register_functions(http_post_created_bp)
app.register_functions(cosmos_post_created_bp)
app.register_functions(process_memory_jobs_bp)
app.register_functions(cleanup_web_memory_bp)
