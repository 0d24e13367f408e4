"""Single-server FIFO queue model (M/M/1 with exponential distributions)."""

from collections import deque
from typing import Dict, Optional

from ..core.engine import Engine
from ..core.event_source import EventSource
from ..rng.distributions import Distribution, make_distribution
from ..rng.random_source import RandomSource
from ..utils.logger import setup_logger


class SingleServerQueue:
    """Open single-server queue with FIFO discipline.

    Calling the model on a fresh engine sets up one run: it connects the
    arrival and departure sources and schedules the first arrival. It then
    feeds the statistics registered on the engine under the configured
    names:

    - ``response_time``: time from arrival to departure of each customer
    - ``waiting_time``: time spent in the queue before service
    - ``num_in_system``: number of customers, weighted by how long it lasted
    """

    def __init__(self, arrival: Distribution, service: Distribution,
                 response_time: str = 'response_time',
                 waiting_time: str = 'waiting_time',
                 num_in_system: str = 'num_in_system'):
        """Initialize queue model.

        Args:
            arrival: Inter-arrival time distribution
            service: Service time distribution
            response_time: Statistic name for response times
            waiting_time: Statistic name for waiting times
            num_in_system: Statistic name for the time-weighted queue length
        """
        self.arrival = arrival
        self.service = service
        self.statistic_names = {
            'response_time': response_time,
            'waiting_time': waiting_time,
            'num_in_system': num_in_system,
        }
        self.logger = setup_logger(self.__class__.__name__)
        self.num_runs = 0

        self._engine: Optional[Engine] = None
        self._rng: Optional[RandomSource] = None
        self._queue = deque()
        self._in_service = None
        self._last_change = 0.0
        self.num_arrivals = 0
        self.num_departures = 0

    @classmethod
    def from_config(cls, config: Dict) -> "SingleServerQueue":
        """Build the model from the ``model`` section of a config."""
        model_config = config.get('model', config)
        return cls(
            make_distribution(model_config['arrival']),
            make_distribution(model_config['service']),
        )

    @property
    def utilization(self) -> float:
        """Offered load (arrival rate over service rate)."""
        return self.service.mean() / self.arrival.mean()

    @property
    def num_in_system(self) -> int:
        return len(self._queue) + (1 if self._in_service is not None else 0)

    def __call__(self, engine: Engine, rng: RandomSource) -> None:
        """Set up a run on the given engine."""
        self._engine = engine
        self._rng = rng
        self._queue = deque()
        self._in_service = None
        self._last_change = engine.simulated_time
        self.num_arrivals = 0
        self.num_departures = 0
        self.num_runs += 1

        self.arrival_source = EventSource("Arrival")
        self.departure_source = EventSource("Departure")
        self.arrival_source.connect(self._on_arrival)
        self.departure_source.connect(self._on_departure)

        engine.schedule(self.arrival_source,
                        engine.simulated_time + self.arrival.sample(rng))

    def _statistic(self, key: str):
        name = self.statistic_names.get(key)
        return self._engine.statistics.get(name) if name else None

    def _record_num_in_system(self, now: float) -> None:
        stat = self._statistic('num_in_system')
        if stat is not None and now > self._last_change:
            stat.collect(self.num_in_system, now - self._last_change)
        self._last_change = now

    def _on_arrival(self, event, context) -> None:
        now = context.simulated_time
        self._record_num_in_system(now)
        self.num_arrivals += 1

        if self._in_service is None:
            self._start_service(now, now)
        else:
            self._queue.append(now)

        context.schedule(self.arrival_source, now + self.arrival.sample(self._rng))

    def _start_service(self, arrival_time: float, now: float) -> None:
        self._in_service = arrival_time
        waiting = self._statistic('waiting_time')
        if waiting is not None:
            waiting.collect(now - arrival_time)
        self._engine.schedule(self.departure_source, now + self.service.sample(self._rng),
                              payload=arrival_time)

    def _on_departure(self, event, context) -> None:
        now = context.simulated_time
        self._record_num_in_system(now)
        self.num_departures += 1

        response = self._statistic('response_time')
        if response is not None:
            response.collect(now - event.payload)

        self._in_service = None
        if self._queue:
            self._start_service(self._queue.popleft(), now)
