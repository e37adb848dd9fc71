"""
Monitoring and instrumentation utilities for New Relic APM.

Provides decorators and context managers for tracking repository
transactions, store round trips, and custom business events such as claims.
"""
import functools
import inspect
import logging
from typing import Callable, Optional

import newrelic.agent

from rewardhub.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def monitoring_enabled() -> bool:
    """Whether a New Relic license key is configured."""
    return bool(settings.new_relic_license_key)


def init_agent() -> bool:
    """
    Initialize the New Relic agent if a license key is configured.

    Returns:
        True if the agent was initialized, False otherwise
    """
    if not monitoring_enabled():
        logger.info("New Relic monitoring not configured (license key not set)")
        return False

    try:
        newrelic.agent.initialize()
        logger.info(f"New Relic agent initialized for app '{settings.new_relic_app_name}'")
        return True
    except Exception as e:
        logger.warning(f"New Relic initialization failed: {str(e)}")
        return False


def monitor_transaction(name: Optional[str] = None):
    """
    Decorator to trace a function call as a New Relic function trace.

    Args:
        name: Custom trace name (defaults to module.function)

    Usage:
        @monitor_transaction("Repository/claim")
        def claim(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        trace_name = name or f"{func.__module__}.{func.__qualname__}"

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                if not monitoring_enabled():
                    return await func(*args, **kwargs)
                with newrelic.agent.FunctionTrace(trace_name):
                    return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            if not monitoring_enabled():
                return func(*args, **kwargs)
            with newrelic.agent.FunctionTrace(trace_name):
                return func(*args, **kwargs)

        return sync_wrapper

    return decorator


def record_custom_metric(metric_name: str, value: float):
    """
    Record a custom metric in New Relic.

    Args:
        metric_name: Name of the metric (e.g., "Custom/Challenges/Claimed")
        value: Metric value
    """
    if monitoring_enabled():
        try:
            newrelic.agent.record_custom_metric(metric_name, value)
        except Exception as e:
            logger.debug(f"Failed to record custom metric: {e}")


def record_custom_event(event_type: str, attributes: dict):
    """
    Record a custom event in New Relic.

    Args:
        event_type: Type of event (e.g., "ChallengeClaim")
        attributes: Dictionary of event attributes
    """
    if monitoring_enabled():
        try:
            newrelic.agent.record_custom_event(event_type, attributes)
        except Exception as e:
            logger.debug(f"Failed to record custom event: {e}")


class DatastoreTrace:
    """
    Context manager for tracking store round trips.

    Usage:
        with DatastoreTrace("Redis", "challenges", "hgetall"):
            # store call here
            pass
    """

    def __init__(self, product: str, target: str, operation: str):
        """
        Initialize datastore trace context.

        Args:
            product: Datastore product name ("Redis", "SQLite", "Postgres")
            target: Collection being accessed
            operation: Name of the store operation
        """
        self.product = product
        self.target = target
        self.operation = operation
        self.trace = None

    def __enter__(self):
        if monitoring_enabled():
            try:
                self.trace = newrelic.agent.DatastoreTrace(
                    product=self.product,
                    target=self.target,
                    operation=self.operation,
                )
                self.trace.__enter__()
            except Exception as e:
                logger.debug(f"Failed to start datastore trace: {e}")
                self.trace = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.trace:
            try:
                self.trace.__exit__(exc_type, exc_val, exc_tb)
            except Exception as e:
                logger.debug(f"Failed to end datastore trace: {e}")
