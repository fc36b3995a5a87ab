"""systems package – Decision cache, circuit breakers / retry, validation and error stats."""

from .cache import CacheConfig, CacheStats, TTLCache
from .error_recovery import BreakerConfig, CircuitBreakerState, ErrorRecovery, RetryConfig
from .error_handling import ErrorHandler, ErrorStats
