"""
In-process counters for observability. Process-local; for multi-worker use external metrics (e.g. Prometheus).
"""
import threading

# POST /auth/login attempts that ended in the generic 401.
login_failures_total: int = 0
# Requests refused by the authorization gate (401 or 403).
authorization_denials_total: int = 0
_lock = threading.Lock()


def increment_login_failures_total() -> int:
    """Increment login_failures_total; return new value. Thread-safe."""
    global login_failures_total
    with _lock:
        login_failures_total += 1
        return login_failures_total


def increment_authorization_denials_total() -> int:
    """Increment authorization_denials_total; return new value. Thread-safe."""
    global authorization_denials_total
    with _lock:
        authorization_denials_total += 1
        return authorization_denials_total
