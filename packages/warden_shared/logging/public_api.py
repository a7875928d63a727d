"""Instrumentation decorator for public service API methods.

``public_api_instrumented`` wraps one service method and reports a start and a
completion event to each configured concern. Completion events carry the
authorization reason code when the result exposes one, so a denied decision
and a faulted call are distinguishable in logs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Mapping, Protocol, Sequence

from . import fields
from .context import log_context


@dataclass(frozen=True)
class InvocationContext:
    """What was called, by whom, and about which ids."""

    component_id: str
    api_name: str
    trace_id: str | None
    envelope_id: str | None
    principal: str | None
    references: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CompletionContext:
    """How one call ended."""

    invocation: InvocationContext
    success: bool
    duration_ms: float
    errors: list[str] = field(default_factory=list)
    reason_code: str | None = None


class PublicApiInstrumentationConcern(Protocol):
    """Hook contract for one instrumentation concern."""

    def on_invocation(self, context: InvocationContext) -> None:
        """Handle the start of one call."""

    def on_completion(self, context: CompletionContext) -> None:
        """Handle the end of one call."""


class PublicApiLoggingConcern:
    """Emit one debug line per call start and one line per completion.

    Completions log at INFO when the call succeeded or returned a business
    denial, and at WARNING when it raised or returned error details.
    """

    def __init__(self, *, logger: Any) -> None:
        self._logger = logger

    def on_invocation(self, context: InvocationContext) -> None:
        with log_context(_base_fields(context, fields.PUBLIC_API_INVOCATION_EVENT)):
            self._logger.debug("Public API invocation")

    def on_completion(self, context: CompletionContext) -> None:
        payload = _base_fields(context.invocation, fields.PUBLIC_API_COMPLETION_EVENT)
        payload[fields.SUCCESS] = context.success
        payload[fields.DURATION_MS] = context.duration_ms
        if context.errors:
            payload[fields.ERRORS] = context.errors
        if context.reason_code is not None:
            payload[fields.REASON_CODE] = context.reason_code
        with log_context(payload):
            if context.success or not context.errors:
                self._logger.info("Public API completion")
            else:
                self._logger.warning("Public API completion")


def public_api_instrumented(
    *,
    component_id: str,
    api_name: str | None = None,
    id_fields: tuple[str, ...] = (),
    concerns: Sequence[PublicApiInstrumentationConcern] | None = None,
    logger: Any | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate one public API method.

    ``id_fields`` names keyword arguments copied into the invocation
    references; ``meta`` is read for trace id, envelope id and principal.
    Passing ``logger`` prepends the logging concern. A concern that raises is
    reported through ``logger`` and never breaks the call.
    """
    active: list[PublicApiInstrumentationConcern] = list(concerns or ())
    if logger is not None:
        active.insert(0, PublicApiLoggingConcern(logger=logger))
    if not active:
        raise ValueError("public_api_instrumented requires at least one concern")

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = api_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            invocation = _invocation(component_id, name, id_fields, kwargs)
            _dispatch(active, logger, invocation, "invocation", invocation)

            started = perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001
                completion = CompletionContext(
                    invocation=invocation,
                    success=False,
                    duration_ms=_elapsed_ms(started),
                    errors=[f"{type(exc).__name__}: {exc}"],
                )
                _dispatch(active, logger, invocation, "completion", completion)
                raise

            success, errors, reason_code = _summarize(result)
            completion = CompletionContext(
                invocation=invocation,
                success=success,
                duration_ms=_elapsed_ms(started),
                errors=errors,
                reason_code=reason_code,
            )
            _dispatch(active, logger, invocation, "completion", completion)
            return result

        return wrapper

    return decorator


def _invocation(
    component_id: str,
    api_name: str,
    id_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> InvocationContext:
    meta = kwargs.get("meta")
    return InvocationContext(
        component_id=component_id,
        api_name=api_name,
        trace_id=_text(getattr(meta, "trace_id", None)),
        envelope_id=_text(getattr(meta, "envelope_id", None)),
        principal=_text(getattr(meta, "principal", None)),
        references={
            key: str(kwargs[key]) for key in id_fields if _text(kwargs.get(key)) is not None
        },
    )


def _summarize(result: object) -> tuple[bool, list[str], str | None]:
    """Return success, error summaries and reason code for one result.

    Envelopes report ``ok`` and ``errors`` and may carry the decision as
    payload; approval outcomes report ``ok`` and ``reason_code`` directly.
    """
    errors = [
        summary
        for summary in (_error_summary(item) for item in getattr(result, "errors", None) or ())
        if summary is not None
    ]
    ok = getattr(result, "ok", None)
    success = ok if isinstance(ok, bool) else not errors
    reason = getattr(result, "reason_code", None)
    if reason is None:
        reason = getattr(getattr(result, "payload", None), "reason_code", None)
    if reason is None and errors:
        reason = getattr(result.errors[0], "code", None)  # type: ignore[attr-defined]
    return success, errors, _text(getattr(reason, "value", reason))


def _error_summary(item: object) -> str | None:
    message = _text(getattr(item, "message", None))
    if message is None:
        return None
    code = _text(getattr(item, "code", None))
    return message if code is None else f"{code}: {message}"


def _base_fields(context: InvocationContext, event: str) -> dict[str, object]:
    return {
        fields.EVENT: event,
        fields.COMPONENT_ID: context.component_id,
        fields.API_NAME: context.api_name,
        fields.TRACE_ID: context.trace_id,
        fields.ENVELOPE_ID: context.envelope_id,
        fields.PRINCIPAL: context.principal,
        **context.references,
    }


def _dispatch(
    concerns: Sequence[PublicApiInstrumentationConcern],
    logger: Any | None,
    invocation: InvocationContext,
    stage: str,
    context: InvocationContext | CompletionContext,
) -> None:
    for concern in concerns:
        try:
            if stage == "invocation":
                concern.on_invocation(context)  # type: ignore[arg-type]
            else:
                concern.on_completion(context)  # type: ignore[arg-type]
        except Exception as exc:  # noqa: BLE001
            if logger is None:
                continue
            with log_context(
                {
                    fields.EVENT: fields.PUBLIC_API_INSTRUMENTATION_FAILURE_EVENT,
                    fields.COMPONENT_ID: invocation.component_id,
                    fields.API_NAME: invocation.api_name,
                    fields.STAGE: stage,
                    fields.CONCERN: type(concern).__name__,
                    fields.ERRORS: [f"{type(exc).__name__}: {exc}"],
                }
            ):
                logger.warning("Public API instrumentation concern failed")


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000.0, 3)


def _text(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)
