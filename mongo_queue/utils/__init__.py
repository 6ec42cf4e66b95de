from mongo_queue.utils.observability import configure_logging, log_queue_event, logger

__all__ = ["configure_logging", "log_queue_event", "logger"]
