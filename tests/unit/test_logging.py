import structlog

from shared.infrastructure.observability.logger import bind_context, clear_context, log_context


def test_log_context_restores_outer_fields():
    bind_context(trace_id="req-1")
    with log_context(tenant_id="shop_001"):
        assert structlog.contextvars.get_contextvars() == {"trace_id": "req-1", "tenant_id": "shop_001"}
    assert structlog.contextvars.get_contextvars() == {"trace_id": "req-1"}
    clear_context()
    assert structlog.contextvars.get_contextvars() == {}
