# ==============================================================================
# INTERNAL PROFILING
# ==============================================================================
# Measures route and function timings without affecting responses.
# Entries go to the "sweet_shop.performance" logger; the handlers installed
# by logger.configure_logging decide where they end up.
# ==============================================================================

import logging
import threading
import time
from collections import defaultdict
from functools import wraps
from typing import Any, Dict

logger = logging.getLogger('sweet_shop.performance')

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

# Time thresholds (milliseconds)
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

# Route rules -> readable action names
ROUTE_NAMES = {
    # Authentication
    'POST /api/auth/register': 'Register',
    'POST /api/auth/login': 'Log in',
    'GET /api/auth/me': 'View profile',
    'PUT /api/auth/password': 'Change password',

    # Catalog
    'GET /api/sweets': 'List sweets',
    'POST /api/sweets': 'Create sweet',
    'GET /api/sweets/search': 'Search sweets',
    'POST /api/sweets/reseed': 'Reseed catalog',
    'GET /api/sweets/<sweet_id>': 'View sweet',
    'PUT /api/sweets/<sweet_id>': 'Update sweet',
    'DELETE /api/sweets/<sweet_id>': 'Delete sweet',

    # Inventory
    'POST /api/sweets/<sweet_id>/purchase': 'Purchase',
    'POST /api/sweets/<sweet_id>/restock': 'Restock',
}


# ═══════════════════════════════════════════════════════════════════════════
# FUNCTION STATISTICS (in memory)
# ═══════════════════════════════════════════════════════════════════════════

# Structure: {function_name: {calls: int, total_ms: float, max_ms: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_ms': 0.0, 'max_ms': 0.0})
_stats_lock = threading.Lock()


def _get_route_name(method: str, rule: str) -> str:
    return ROUTE_NAMES.get(f"{method} {rule}", f"{method} {rule}")


# ═══════════════════════════════════════════════════════════════════════════
# 1. ROUTE PROFILING (Flask hooks)
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method: str, path: str, rule: str, time_ms: float,
                          status: int, user: str = None) -> None:
    """
    Logs the timing of one request, escalating slow ones.

    Args:
        method: GET, POST, ...
        path: Requested path (/api/sweets/9a1b.../purchase)
        rule: Flask rule (/api/sweets/<sweet_id>/purchase)
        time_ms: Elapsed milliseconds
        status: Response status code
        user: Authenticated user id, if any
    """
    action = _get_route_name(method, rule)
    user_str = user or 'anonymous'

    if time_ms >= THRESHOLD_CRITICAL:
        level = logging.ERROR
        label = 'VERY SLOW'
    elif time_ms >= THRESHOLD_WARNING:
        level = logging.WARNING
        label = 'SLOW'
    else:
        level = logging.INFO
        label = 'OK'

    logger.log(level, "[%s] %s | %s %s -> %s | user=%s | %.0f ms",
               label, action, method, path, status, user_str, time_ms)


def init_profiling(app, enabled: bool = True) -> None:
    """
    Registers before_request/after_request timing hooks on a Flask app.

    Usage:
        init_profiling(app, config.enable_profiling)
    """
    if not enabled:
        return

    from flask import g, request

    @app.before_request
    def _start_timer():
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000
        rule = str(request.url_rule) if request.url_rule else request.path
        identity = g.get('current_user')
        user = identity.user_id if identity is not None else None

        log_route_performance(request.method, request.path, rule, elapsed,
                              response.status_code, user)
        return response


# ═══════════════════════════════════════════════════════════════════════════
# 2. DECORATOR FOR KEY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Measures the duration of critical functions.

    Usage:
        @profile_function
        def my_function():
            ...

        @profile_function(name="Purchase sweet")
        def purchase():
            ...

    Records call count, total time and maximum time.
    """
    def decorator(fn):
        func_name = name or fn.__qualname__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed = (time.perf_counter() - start) * 1000
                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_ms'] += elapsed
                    stats['max_ms'] = max(stats['max_ms'], elapsed)
                if elapsed >= THRESHOLD_WARNING:
                    logger.warning("Slow function: %s took %.0f ms", func_name, elapsed)

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def get_function_stats() -> Dict[str, Dict[str, Any]]:
    """
    Snapshot of the collected statistics.

    Returns:
        {name: {calls, total_ms, max_ms, avg_ms}}
    """
    with _stats_lock:
        return {
            fn_name: dict(stats, avg_ms=stats['total_ms'] / stats['calls'])
            for fn_name, stats in _function_stats.items()
            if stats['calls']
        }


def reset_function_stats() -> None:
    with _stats_lock:
        _function_stats.clear()
