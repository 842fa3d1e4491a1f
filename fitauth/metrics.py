"""Prometheus metrics endpoint."""

from collections import Counter

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["metrics"])

_token_exchanges: Counter[str] = Counter()
_flow_outcomes: Counter[str] = Counter()


def record_token_exchange(outcome: str) -> None:
    """Count one relay call by outcome (success, upstream_error, invalid_request, ...)."""
    _token_exchanges[outcome] += 1


def record_flow_outcome(status: str) -> None:
    _flow_outcomes[status] += 1


def reset_metrics() -> None:
    _token_exchanges.clear()
    _flow_outcomes.clear()


@router.get("/metrics", response_class=PlainTextResponse)
async def metrics():
    """Prometheus-compatible metrics endpoint."""

    metrics_output = []

    for outcome, count in sorted(_token_exchanges.items()):
        metrics_output.append(f'fitauth_token_exchanges_total{{outcome="{outcome}"}} {count}')

    for status, count in sorted(_flow_outcomes.items()):
        metrics_output.append(f'fitauth_login_flows_total{{status="{status}"}} {count}')

    metrics_output.append(f"fitauth_token_exchanges_all {sum(_token_exchanges.values())}")

    return "\n".join(metrics_output) + "\n"
