# -*- coding: utf-8 -*-

import logging

from pledge.common import config
from pledge.promise import (Deferred, get_default_sink, LoggingRejectionSink,
                            Promise, set_default_sink)


class Err(Exception):
    pass


class TestUnobservedRejection(object):

    def test_unobserved_rejection_is_reported(self, scheduler, sink):
        error = Err()
        p = Promise.reject(error)

        # Never before the scheduler runs.
        assert sink.notifications == []
        scheduler.run()
        assert sink.notifications == [(p, error)]

    def test_reported_only_once(self, scheduler, sink):
        Promise.reject(Err())
        scheduler.run()
        scheduler.run()
        assert len(sink.notifications) == 1

    def test_observed_rejection_is_not_reported(self, scheduler, sink):
        Promise.reject(Err()).catch(lambda err: None)
        scheduler.run()
        assert sink.notifications == []

    def test_callback_registered_before_check(self, scheduler, sink):
        p = Promise.reject(Err())
        p.then(None, lambda err: None)
        scheduler.run()
        assert sink.notifications == []

    def test_fulfilled_promise_is_not_reported(self, scheduler, sink):
        Promise.resolve('OK')
        scheduler.run()
        assert sink.notifications == []

    def test_pending_promise_is_not_reported(self, scheduler, sink):
        Deferred()
        scheduler.run()
        assert sink.notifications == []

    def test_late_callback_does_not_cancel_report(self, scheduler, sink):
        """The check is done once; a late callback can't cancel it."""
        p = Promise.reject(Err())
        scheduler.run()
        p.catch(lambda err: None)
        scheduler.run()
        assert len(sink.notifications) == 1

    def test_end_of_chain_is_reported(self, scheduler, sink):
        error = Err()
        last = Promise.reject(error).then(lambda v: v).then(lambda v: v)
        scheduler.run()
        assert sink.notifications == [(last, error)]

    def test_rejection_after_registration(self, scheduler, sink):
        df = Deferred()
        df.promise.catch(lambda err: None)
        df.reject(Err())
        scheduler.run()
        assert sink.notifications == []

    def test_injected_sink(self, scheduler, sink):
        other_sink = type(sink)()
        error = Err()
        p = Promise.reject(error, sink=other_sink)
        p2 = p.then(lambda v: v)
        scheduler.run()

        assert sink.notifications == []
        assert other_sink.notifications == [(p2, error)]


class TestLoggingRejectionSink(object):

    def test_log_unobserved_rejection(self, scheduler, caplog):
        error = Err('unobserved')
        p = Promise.reject(error, sink=LoggingRejectionSink())

        with caplog.at_level(logging.ERROR):
            scheduler.run()

        records = [r for r in caplog.records
                   if r.name == 'pledge.promise.rejection']
        assert len(records) == 1
        assert 'Uncaught (in promise)' in records[0].getMessage()
        assert repr(p) in records[0].getMessage()
        assert records[0].exc_info[1] is error

    def test_log_non_exception_reason(self, scheduler, caplog):
        Promise.reject('plain reason', sink=LoggingRejectionSink())

        with caplog.at_level(logging.ERROR):
            scheduler.run()

        assert "Uncaught (in promise)" in caplog.text
        assert "'plain reason'" in caplog.text

    def test_handler_suppresses_log(self, scheduler, caplog):
        received = []

        def handler(promise, reason):
            received.append(reason)
            return True

        error = Err()
        logging_sink = LoggingRejectionSink()
        logging_sink.unobserved_rejection.connect(handler)
        Promise.reject(error, sink=logging_sink)

        with caplog.at_level(logging.ERROR):
            scheduler.run()

        assert received == [error]
        assert 'Uncaught (in promise)' not in caplog.text

    def test_handler_not_suppressing_log(self, scheduler, caplog):
        logging_sink = LoggingRejectionSink()
        logging_sink.unobserved_rejection.connect(lambda p, r: False)

        assert not logging_sink.notify_unobserved_rejection(None, Err())

    def test_report_disabled_by_config(self, scheduler, caplog, config_file):
        config.set('report_unhandled_rejections', False)
        Promise.reject(Err(), sink=LoggingRejectionSink())

        with caplog.at_level(logging.ERROR):
            scheduler.run()
        assert 'Uncaught (in promise)' not in caplog.text


class TestDefaultSink(object):

    def test_set_default_sink(self, sink):
        other = LoggingRejectionSink()
        assert set_default_sink(other) is sink
        assert get_default_sink() is other
        assert Promise.resolve(1).sink is other
        set_default_sink(sink)

    def test_reset_default_sink(self, sink):
        set_default_sink(None)
        assert isinstance(get_default_sink(), LoggingRejectionSink)
