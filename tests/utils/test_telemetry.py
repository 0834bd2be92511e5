import asyncio

from unittest import mock

import pytest

from daybook.utils.telemetry import SpanKind, trace_class, trace_function


@pytest.fixture
def mock_span():
    return mock.MagicMock()


@pytest.fixture
def mock_tracer(mock_span):
    tracer = mock.MagicMock()
    tracer.start_as_current_span.return_value.__enter__.return_value = mock_span
    tracer.start_as_current_span.return_value.__exit__.return_value = False
    return tracer


@pytest.fixture(autouse=True)
def patch_trace_get_tracer(mock_tracer):
    with mock.patch('opentelemetry.trace.get_tracer', return_value=mock_tracer):
        yield


def test_trace_function_sync_success(mock_span, mock_tracer):
    @trace_function
    def add(x, y):
        return x + y

    assert add(2, 3) == 5
    mock_span.set_status.assert_called_once()
    mock_span.record_exception.assert_not_called()
    name = mock_tracer.start_as_current_span.call_args.args[0]
    assert name.endswith('add')


def test_trace_function_sync_exception(mock_span):
    @trace_function
    def fail():
        raise ValueError('fail')

    with pytest.raises(ValueError):
        fail()
    mock_span.record_exception.assert_called()
    mock_span.set_status.assert_any_call(mock.ANY, description='fail')


@pytest.mark.asyncio
async def test_trace_function_async_success(mock_span):
    @trace_function
    async def double(x):
        await asyncio.sleep(0)
        return x * 2

    assert await double(4) == 8
    mock_span.record_exception.assert_not_called()


@pytest.mark.asyncio
async def test_trace_function_async_exception(mock_span):
    @trace_function
    async def fail():
        await asyncio.sleep(0)
        raise RuntimeError('async fail')

    with pytest.raises(RuntimeError):
        await fail()
    mock_span.record_exception.assert_called()
    mock_span.set_status.assert_any_call(mock.ANY, description='async fail')


@pytest.mark.asyncio
async def test_trace_function_attribute_extractor_sees_exception(mock_span):
    seen = {}

    def extractor(span, args, kwargs, result, exception):
        seen['exception'] = exception

    @trace_function(attribute_extractor=extractor)
    async def fail():
        raise KeyError('missing')

    with pytest.raises(KeyError):
        await fail()
    assert isinstance(seen['exception'], KeyError)


def test_trace_function_attribute_extractor_error_logged(mock_span):
    with mock.patch('daybook.utils.telemetry.logger') as logger:

        def extractor(span, args, kwargs, result, exception):
            raise RuntimeError('attr fail')

        @trace_function(attribute_extractor=extractor)
        def one():
            return 1

        assert one() == 1
        logger.error.assert_called_once()


def test_trace_function_custom_name_kind_and_attributes(mock_span, mock_tracer):
    @trace_function(
        span_name='custom.span', kind=SpanKind.CLIENT, attributes={'a': 'b'}
    )
    def one():
        return 1

    one()
    mock_tracer.start_as_current_span.assert_called_with(
        'custom.span', kind=SpanKind.CLIENT
    )
    mock_span.set_attribute.assert_any_call('a', 'b')


def test_trace_class_skips_private_static_and_excluded(mock_span):
    @trace_class(exclude_list=['skip_me'])
    class Service:
        def public(self):
            return 'public'

        def skip_me(self):
            return 'skip'

        def _private(self):
            return 'private'

        @staticmethod
        def helper(value):
            return value

    obj = Service()
    assert obj.public() == 'public'
    assert obj.helper('x') == 'x'
    assert hasattr(obj.public, '__wrapped__')
    assert not hasattr(obj.skip_me, '__wrapped__')
    assert not hasattr(obj._private, '__wrapped__')
    assert not hasattr(Service.helper, '__wrapped__')


def test_trace_class_include_list(mock_span):
    @trace_class(include_list=['only_this'])
    class Service:
        def only_this(self):
            return 'yes'

        def not_this(self):
            return 'no'

    obj = Service()
    assert obj.only_this() == 'yes'
    assert hasattr(obj.only_this, '__wrapped__')
    assert not hasattr(obj.not_this, '__wrapped__')
