"""Unit tests for change event sources."""

import threading

import httpx
import pytest

from common.protocol import EventBatch, UnlinkEvent
from mirror.exceptions import NamespaceUnavailableError
from sources.event_streams import HttpEventStream, QueueEventStream


class TestQueueEventStream:
    """Test the in-process queue."""

    def test_poll_empty_returns_none(self):
        assert QueueEventStream().poll() is None

    def test_batches_come_out_in_order(self):
        stream = QueueEventStream()
        stream.push(EventBatch(transaction_id=1))
        stream.push(EventBatch(transaction_id=2))

        assert stream.poll().transaction_id == 1
        assert stream.poll().transaction_id == 2
        assert stream.poll() is None

    def test_push_from_other_threads(self):
        stream = QueueEventStream()
        workers = [
            threading.Thread(target=stream.push, args=(EventBatch(transaction_id=i),))
            for i in range(10)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert stream.pending() == 10


def _feed(batches_by_since):
    requests = []

    def handler(request):
        since = int(request.url.params['since'])
        requests.append(since)
        return httpx.Response(200, json={'batches': batches_by_since.get(since, [])})

    return httpx.MockTransport(handler), requests


def _stream(transport, **kwargs):
    session = httpx.Client(transport=transport, base_url='http://feed/events')
    return HttpEventStream('http://feed/events', session=session, **kwargs)


class TestHttpEventStream:
    """Test the HTTP polling client."""

    def test_fetches_buffers_and_advances_cursor(self):
        transport, requests = _feed({
            -1: [
                {'transaction_id': 1, 'events': [{'type': 'UNLINK', 'path': '/a'}]},
                {'transaction_id': 2, 'events': []},
            ],
        })
        stream = _stream(transport)

        first = stream.poll()
        second = stream.poll()
        third = stream.poll()

        assert first.transaction_id == 1
        assert isinstance(first.events[0], UnlinkEvent)
        assert second.transaction_id == 2
        assert third is None
        assert requests == [-1, 2]
        assert stream.last_transaction_id == 2

    def test_skips_already_seen_transactions(self):
        transport, _ = _feed({
            5: [{'transaction_id': 5, 'events': []}, {'transaction_id': 6, 'events': []}],
        })
        stream = _stream(transport, since=5)

        assert stream.poll().transaction_id == 6
        assert stream.poll() is None

    def test_error_status_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(400, text='bad since'))
        stream = _stream(transport)

        with pytest.raises(NamespaceUnavailableError):
            stream.poll()
