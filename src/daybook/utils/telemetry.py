"""OpenTelemetry tracing helpers for daybook.

`trace_function` wraps a single sync or async callable in a span and
`trace_class` applies it to the public methods of a class::

    @trace_class(kind=SpanKind.SERVER)
    class TaskService:
        async def append(self, group, task): ...

Spans are named ``<module>.<qualname>`` unless a name is given, record any
exception raised by the wrapped callable and end with an OK or ERROR status.
An optional ``attribute_extractor(span, args, kwargs, result, exception)``
callback may add attributes once the call finishes; errors it raises are
logged and never reach the caller.
"""

import functools
import inspect
import logging

from opentelemetry import trace
from opentelemetry.trace import SpanKind as _SpanKind
from opentelemetry.trace import StatusCode


SpanKind = _SpanKind
__all__ = ['SpanKind', 'trace_class', 'trace_function']
INSTRUMENTING_MODULE_NAME = 'daybook'
INSTRUMENTING_MODULE_VERSION = '0.1.0'

logger = logging.getLogger(__name__)


def _finish(span, span_name, attribute_extractor, args, kwargs, result, exception):
    if exception is None:
        span.set_status(StatusCode.OK)
    else:
        span.record_exception(exception)
        span.set_status(StatusCode.ERROR, description=str(exception))
    if attribute_extractor:
        try:
            attribute_extractor(span, args, kwargs, result, exception)
        except Exception as attr_e:
            logger.error(
                f'attribute_extractor error in span {span_name}: {attr_e}'
            )


def trace_function(
    func=None,
    *,
    span_name=None,
    kind=SpanKind.INTERNAL,
    attributes=None,
    attribute_extractor=None,
):
    """Decorator tracing each call of `func` in its own span.

    Usable bare (``@trace_function``) or with arguments
    (``@trace_function(span_name='daybook.op', kind=SpanKind.CLIENT)``).

    Args:
        func: The function to wrap; None when used with arguments.
        span_name: Span name, defaults to ``f'{module}.{qualname}'``.
        kind: The span kind, ``SpanKind.INTERNAL`` by default.
        attributes: Static attributes set on every span.
        attribute_extractor: Callback adding attributes after the call.
    """
    if func is None:
        return functools.partial(
            trace_function,
            span_name=span_name,
            kind=kind,
            attributes=attributes,
            attribute_extractor=attribute_extractor,
        )

    actual_span_name = span_name or f'{func.__module__}.{func.__qualname__}'

    def start_span():
        tracer = trace.get_tracer(
            INSTRUMENTING_MODULE_NAME, INSTRUMENTING_MODULE_VERSION
        )
        return tracer.start_as_current_span(actual_span_name, kind=kind)

    def set_static(span):
        for k, v in (attributes or {}).items():
            span.set_attribute(k, v)

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            with start_span() as span:
                set_static(span)
                result = None
                exception = None
                try:
                    result = await func(*args, **kwargs)
                    return result
                except Exception as e:
                    exception = e
                    raise
                finally:
                    _finish(
                        span,
                        actual_span_name,
                        attribute_extractor,
                        args,
                        kwargs,
                        result,
                        exception,
                    )

        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        with start_span() as span:
            set_static(span)
            result = None
            exception = None
            try:
                result = func(*args, **kwargs)
                return result
            except Exception as e:
                exception = e
                raise
            finally:
                _finish(
                    span,
                    actual_span_name,
                    attribute_extractor,
                    args,
                    kwargs,
                    result,
                    exception,
                )

    return sync_wrapper


def trace_class(
    include_list: list[str] | None = None,
    exclude_list: list[str] | None = None,
    kind=SpanKind.INTERNAL,
):
    """Class decorator tracing the public methods of a class.

    Dunder, underscore-prefixed, static and class methods are never traced. When
    `include_list` is given only those methods are traced, otherwise every
    public method not named in `exclude_list`.
    """
    exclude_list = exclude_list or []

    def decorator(cls):
        for name, method in inspect.getmembers(cls, inspect.isfunction):
            if name.startswith('_'):
                continue
            if isinstance(
                inspect.getattr_static(cls, name), staticmethod | classmethod
            ):
                continue
            if include_list and name not in include_list:
                continue
            if not include_list and name in exclude_list:
                continue
            setattr(
                cls,
                name,
                trace_function(
                    span_name=f'{cls.__module__}.{cls.__name__}.{name}',
                    kind=kind,
                )(method),
            )
        return cls

    return decorator
