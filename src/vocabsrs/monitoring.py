"""Prometheus metrics for learning sessions and the word store."""
from prometheus_client import Counter, Histogram, start_http_server

# Session metrics
sessions_started = Counter(
    "vocabsrs_sessions_started_total",
    "Total number of learning sessions started",
    ["mode"],
)

sessions_completed = Counter(
    "vocabsrs_sessions_completed_total",
    "Total number of learning sessions that ran out of words",
    ["mode"],
)

session_duration = Histogram(
    "vocabsrs_session_duration_seconds",
    "Duration of learning sessions in seconds",
    ["mode"],
    buckets=[60, 300, 600, 1800, 3600],  # 1min, 5min, 10min, 30min, 1hour
)

# Learning metrics
words_learned = Counter(
    "vocabsrs_words_learned_total",
    "Total number of new words completed in a session",
)

words_reviewed = Counter(
    "vocabsrs_words_reviewed_total",
    "Total number of already-seen words completed in a session",
)

wrong_answers = Counter(
    "vocabsrs_wrong_answers_total",
    "Total number of incorrect answers",
    ["phase"],
)

undos = Counter(
    "vocabsrs_undos_total",
    "Total number of completions reverted with undo",
)

# Database metrics
db_operations = Counter(
    "vocabsrs_db_operations_total",
    "Total number of database operations",
    ["operation_type"],
)

db_errors = Counter(
    "vocabsrs_db_errors_total",
    "Total number of database errors",
    ["error_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
