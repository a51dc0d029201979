from enum import Enum

class JobStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

class JobOutcome(str, Enum):
    STORED = "stored"
    MEMORY_EXISTS = "memory_exists"
    POST_MISSING = "post_missing"
    NO_QUERIES = "no_queries"
    NO_MEMORY = "no_memory"
