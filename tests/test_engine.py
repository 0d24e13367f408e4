"""Tests for the event list and the simulation engine."""

import math
import unittest

from simanalysis.core.engine import Engine
from simanalysis.core.event_queue import Event, EventQueue
from simanalysis.core.event_source import EventSource
from simanalysis.core.exceptions import InvalidSchedule, UnknownEvent
from simanalysis.stats import MeanEstimator


class TestEventQueue(unittest.TestCase):
    """Test cases for EventQueue."""

    def test_empty_queue(self):
        """Test empty queue behavior."""
        queue = EventQueue()

        self.assertTrue(queue.is_empty())
        self.assertEqual(queue.size(), 0)
        self.assertIsNone(queue.peek())
        with self.assertRaises(IndexError):
            queue.pop()

    def test_time_ordering(self):
        """Test events are popped in time order."""
        queue = EventQueue()
        for t in [3.0, 1.0, 2.0]:
            queue.push(Event(time=t))

        self.assertEqual([queue.pop().time for _ in range(3)], [1.0, 2.0, 3.0])

    def test_priority_then_fifo(self):
        """Test equal times are ordered by priority, then insertion."""
        queue = EventQueue()
        a = queue.push(Event(time=1.0, priority=1, payload='a'))
        b = queue.push(Event(time=1.0, priority=0, payload='b'))
        c = queue.push(Event(time=1.0, priority=1, payload='c'))

        self.assertEqual([queue.pop() for _ in range(3)], [b, a, c])

    def test_cancel(self):
        """Test cancelled events are never popped."""
        queue = EventQueue()
        first = queue.push(Event(time=1.0))
        second = queue.push(Event(time=2.0))

        queue.cancel(first)

        self.assertFalse(queue.contains(first))
        self.assertEqual(len(queue), 1)
        self.assertIs(queue.peek(), second)
        self.assertIs(queue.pop(), second)
        self.assertTrue(queue.is_empty())

    def test_cancel_unknown_event(self):
        """Test cancelling an event that is not pending fails."""
        queue = EventQueue()
        event = queue.push(Event(time=1.0))
        queue.pop()

        with self.assertRaises(UnknownEvent):
            queue.cancel(event)
        with self.assertRaises(UnknownEvent):
            queue.cancel(Event(time=5.0))

    def test_cancelled_entries_are_compacted(self):
        """Test repeated far-future cancellations do not grow the heap."""
        queue = EventQueue()
        anchor = queue.push(Event(time=1.0))

        for i in range(1000):
            timeout = queue.push(Event(time=1e6 + i))
            queue.cancel(timeout)

        self.assertEqual(len(queue), 1)
        self.assertLessEqual(len(queue._queue), 2 * len(queue) + 17)
        self.assertIs(queue.pop(), anchor)
        self.assertTrue(queue.is_empty())

    def test_compaction_keeps_order(self):
        """Test compaction preserves the order of pending events."""
        queue = EventQueue()
        kept = [queue.push(Event(time=float(t))) for t in range(10, 0, -1)]
        for t in range(100):
            queue.cancel(queue.push(Event(time=0.5 + t)))

        self.assertEqual([queue.pop() for _ in range(10)], kept[::-1])

    def test_invalid_event_time(self):
        """Test NaN and negative times are rejected."""
        with self.assertRaises(ValueError):
            Event(time=math.nan)
        with self.assertRaises(ValueError):
            Event(time=-1.0)


class TestEngine(unittest.TestCase):
    """Test cases for Engine."""

    def setUp(self):
        """Set up test fixtures."""
        self.engine = Engine()
        self.fired = []

    def record(self, event, context):
        self.fired.append((context.simulated_time, event.payload))

    def test_fires_in_time_order(self):
        """Test events fire in non-decreasing time order."""
        for t in [5.0, 0.5, 3.0, 3.0, 1.0]:
            self.engine.schedule(self.record, t, payload=t)

        self.engine.run()

        times = [t for t, _ in self.fired]
        self.assertEqual(times, sorted(times))
        self.assertEqual(len(times), 5)
        self.assertEqual(self.engine.current_time, 5.0)

    def test_simultaneous_events_fifo(self):
        """Test events at the same time fire in scheduling order."""
        for i in range(10):
            self.engine.schedule(self.record, 2.0, payload=i)

        self.engine.run()

        self.assertEqual([p for _, p in self.fired], list(range(10)))

    def test_schedule_at_current_time_from_callback(self):
        """Test a callback may schedule an event at the current time."""
        def chain(event, context):
            self.record(event, context)
            if event.payload < 3:
                context.schedule(chain, context.simulated_time, payload=event.payload + 1)

        self.engine.schedule(chain, 1.0, payload=0)
        self.engine.run()

        self.assertEqual(self.fired, [(1.0, 0), (1.0, 1), (1.0, 2), (1.0, 3)])

    def test_schedule_in_past_fails(self):
        """Test scheduling before the clock raises InvalidSchedule."""
        errors = []

        def late(event, context):
            try:
                context.schedule(self.record, context.simulated_time - 0.1)
            except InvalidSchedule as e:
                errors.append(e)

        self.engine.schedule(late, 2.0)
        self.engine.run()

        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], ValueError)
        with self.assertRaises(InvalidSchedule):
            self.engine.schedule(self.record, math.nan)

    def test_schedule_non_callable_fails(self):
        """Test the target must be callable."""
        with self.assertRaises(TypeError):
            self.engine.schedule("not callable", 1.0)

    def test_cancel(self):
        """Test cancelled events do not fire."""
        keep = self.engine.schedule(self.record, 1.0, payload='keep')
        drop = self.engine.schedule(self.record, 2.0, payload='drop')

        self.engine.cancel(drop)
        self.engine.run()

        self.assertEqual(self.fired, [(1.0, 'keep')])
        with self.assertRaises(UnknownEvent):
            self.engine.cancel(keep)

    def test_cancel_from_callback(self):
        """Test a callback can cancel a later event."""
        later = self.engine.schedule(self.record, 3.0, payload='later')

        def canceller(event, context):
            context.cancel(later)

        self.engine.schedule(canceller, 1.0)
        self.engine.run()

        self.assertEqual(self.fired, [])

    def test_reschedule(self):
        """Test rescheduling moves a pending event."""
        event = self.engine.schedule(self.record, 5.0, payload='moved')
        self.engine.schedule(self.record, 2.0, payload='fixed')

        moved = self.engine.reschedule(event, 1.0)
        self.engine.run()

        self.assertEqual(moved.payload, 'moved')
        self.assertEqual(self.fired, [(1.0, 'moved'), (2.0, 'fixed')])

    def test_reschedule_disabled_source(self):
        """Test rescheduling onto a disabled source keeps the original event."""
        source = EventSource("Timeout")
        source.connect(self.record)
        event = self.engine.schedule(source, 5.0, payload='timeout')
        source.enable(False)

        with self.assertRaises(InvalidSchedule):
            self.engine.reschedule(event, 1.0)

        self.assertTrue(self.engine.event_queue.contains(event))
        source.enable(True)
        self.engine.run()
        self.assertEqual(self.fired, [(5.0, 'timeout')])

    def test_max_events(self):
        """Test the event limit stops the run."""
        engine = Engine(max_events=3)

        def tick(event, context):
            self.record(event, context)
            context.schedule(tick, context.simulated_time + 1.0)

        engine.schedule(tick, 0.0)
        engine.run()

        self.assertEqual(len(self.fired), 3)
        self.assertEqual(engine.num_user_events, 3)

    def test_max_time(self):
        """Test the time limit stops the run and sets the clock."""
        engine = Engine(max_time=10.0)

        def tick(event, context):
            self.record(event, context)
            context.schedule(tick, context.simulated_time + 3.0)

        engine.schedule(tick, 0.0)
        engine.run()

        self.assertEqual([t for t, _ in self.fired], [0.0, 3.0, 6.0, 9.0])
        self.assertEqual(engine.current_time, 10.0)
        self.assertEqual(engine.last_event_time, 9.0)

    def test_stop_now(self):
        """Test stop_now ends the run after the current event."""
        def stopper(event, context):
            self.record(event, context)
            self.engine.stop_now()

        self.engine.schedule(stopper, 1.0)
        self.engine.schedule(self.record, 2.0)
        self.engine.run()

        self.assertEqual(len(self.fired), 1)

    def test_stop_at_time(self):
        """Test stop_at_time caps the run."""
        for t in [1.0, 2.0, 3.0]:
            self.engine.schedule(self.record, t)
        self.engine.stop_at_time(2.5)
        self.engine.run()

        self.assertEqual(len(self.fired), 2)
        self.assertEqual(self.engine.current_time, 2.5)

    def test_stop_at_time_applies_to_one_run(self):
        """Test stop_at_time does not lower max_time for later runs."""
        engine = Engine(max_time=100.0)
        for t in [1.0, 2.0, 3.0]:
            engine.schedule(self.record, t)
        engine.stop_at_time(1.5)
        engine.run()

        self.assertEqual(engine.max_time, 100.0)
        self.assertEqual(engine.current_time, 1.5)

        for t in [10.0, 50.0]:
            engine.schedule(self.record, t)
        engine.run()

        self.assertEqual([t for t, _ in self.fired], [1.0, 10.0, 50.0])
        self.assertEqual(engine.current_time, 50.0)

    def test_context_counters(self):
        """Test the context exposes time counters."""
        seen = []

        def observe(event, context):
            seen.append((context.simulated_time, context.last_event_time))

        self.engine.schedule(observe, 1.0)
        self.engine.schedule(observe, 4.0)
        self.engine.run()

        self.assertEqual(seen, [(1.0, 0.0), (4.0, 1.0)])
        self.assertEqual(self.engine.total_time, 4.0)

    def test_lifecycle_sources(self):
        """Test lifecycle sources fire around the run and each event."""
        calls = []
        self.engine.begin_of_simulation.connect(lambda e, c: calls.append('begin'))
        self.engine.system_initialization.connect(lambda e, c: calls.append('init'))
        self.engine.before_event_firing.connect(lambda e, c: calls.append('before'))
        self.engine.after_event_firing.connect(lambda e, c: calls.append('after'))
        self.engine.system_finalization.connect(lambda e, c: calls.append('final'))
        self.engine.end_of_simulation.connect(lambda e, c: calls.append('end'))

        self.engine.schedule(lambda e, c: calls.append('event'), 1.0)
        self.engine.run()

        self.assertEqual(
            calls,
            ['before', 'begin', 'after', 'before', 'init', 'after',
             'before', 'event', 'after',
             'before', 'final', 'after', 'before', 'end', 'after']
        )

    def test_event_source_sinks(self):
        """Test an event source forwards events to every sink in order."""
        source = EventSource("Arrival")
        order = []
        source.connect(lambda e, c: order.append(('first', e.payload)))
        source.connect(lambda e, c: order.append(('second', e.payload)))

        self.engine.schedule(source, 1.0, payload=42)
        self.engine.run()

        self.assertEqual(order, [('first', 42), ('second', 42)])

    def test_disabled_source(self):
        """Test disabled sources are neither scheduled nor fired."""
        source = EventSource("Departure")
        source.connect(self.record)
        pending = self.engine.schedule(source, 1.0)

        source.enable(False)
        self.assertIsNone(self.engine.schedule(source, 2.0))
        self.engine.run()

        self.assertIsNotNone(pending)
        self.assertEqual(self.fired, [])

    def test_statistic_registry(self):
        """Test statistics are registered by name."""
        stat = self.engine.register_statistic(MeanEstimator("delay"))

        self.assertIs(self.engine.statistic("delay"), stat)
        with self.assertRaises(ValueError):
            self.engine.register_statistic(MeanEstimator("delay"))

        self.engine.remove_statistic("delay")
        self.assertEqual(self.engine.statistics, {})

    def test_step(self):
        """Test firing events one at a time."""
        self.engine.schedule(self.record, 1.0)
        self.engine.schedule(self.record, 2.0)

        self.assertTrue(self.engine.step())
        self.assertEqual(self.engine.current_time, 1.0)
        self.assertTrue(self.engine.step())
        self.assertFalse(self.engine.step())

    def test_from_config(self):
        """Test building an engine from a config."""
        engine = Engine.from_config({'simulation': {'max_events': 10, 'max_time': 5.0}})

        self.assertEqual(engine.max_events, 10)
        self.assertEqual(engine.max_time, 5.0)


if __name__ == '__main__':
    unittest.main()
