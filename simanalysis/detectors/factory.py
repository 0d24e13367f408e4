"""Build detectors from configuration dictionaries."""

import math
from typing import Dict

from .base import (
    BatchSizeDetector,
    NumReplicationsDetector,
    ReplicationSizeDetector,
    TransientDetector,
)
from .batch_size import DummyBatchSizeDetector, Pawlikowski1990BatchSizeDetector
from .num_replications import Banks2005NumReplicationsDetector, ConstantNumReplicationsDetector
from .replication_size import (
    DummyReplicationSizeDetector,
    FixedDurationReplicationSizeDetector,
    FixedNumObsReplicationSizeDetector,
)
from .transient import NullTransientDetector, Pawlikowski1990TransientDetector


def _number(value, default=math.inf):
    """Read a count that may be given as 'inf' in YAML."""
    if value is None:
        return default
    if isinstance(value, str):
        return float(value)
    return value


def _params(config: Dict) -> Dict:
    return {k: v for k, v in config.items() if k != 'type'}


def make_transient_detector(config: Dict = None) -> TransientDetector:
    """Create a transient detector.

    Args:
        config: Dictionary with ``type`` ('null' or 'pawlikowski1990') and
            the detector parameters

    Returns:
        A fresh detector
    """
    config = config or {}
    detector_type = config.get('type') or 'null'

    if detector_type in ('null', 'none'):
        return NullTransientDetector()
    elif detector_type == 'pawlikowski1990':
        params = _params(config)
        for key in ('n0_max', 'max_heuristic_len'):
            if key in params:
                params[key] = _number(params[key])
        return Pawlikowski1990TransientDetector(**params)
    else:
        raise ValueError(f"Unknown transient detector: {detector_type}")


def make_batch_size_detector(config: Dict = None) -> BatchSizeDetector:
    """Create a batch size detector ('dummy' or 'pawlikowski1990')."""
    config = config or {}
    detector_type = config.get('type', 'dummy')

    if detector_type == 'dummy':
        return DummyBatchSizeDetector()
    elif detector_type == 'pawlikowski1990':
        params = _params(config)
        if 'n_max' in params:
            params['n_max'] = _number(params['n_max'])
        return Pawlikowski1990BatchSizeDetector(**params)
    else:
        raise ValueError(f"Unknown batch size detector: {detector_type}")


def make_replication_size_detector(config: Dict = None) -> ReplicationSizeDetector:
    """Create a replication size detector ('dummy', 'fixed_num_obs' or 'fixed_duration')."""
    config = config or {}
    detector_type = config.get('type', 'dummy')

    if detector_type == 'dummy':
        return DummyReplicationSizeDetector()
    elif detector_type == 'fixed_num_obs':
        return FixedNumObsReplicationSizeDetector(config.get('num_obs', 1000))
    elif detector_type == 'fixed_duration':
        if 'duration' not in config:
            raise ValueError("fixed_duration replication size detector needs a 'duration'")
        return FixedDurationReplicationSizeDetector(config['duration'])
    else:
        raise ValueError(f"Unknown replication size detector: {detector_type}")


def make_num_replications_detector(config: Dict = None) -> NumReplicationsDetector:
    """Create a number-of-replications detector ('constant' or 'banks2005')."""
    config = config or {}
    detector_type = config.get('type', 'constant')

    if detector_type == 'constant':
        return ConstantNumReplicationsDetector(_number(config.get('num_replications')))
    elif detector_type == 'banks2005':
        return Banks2005NumReplicationsDetector(
            confidence_level=config.get('confidence_level', 0.95),
            relative_precision=_number(config.get('relative_precision'), 0.04),
            min_replications=config.get('min_replications', 2),
            max_replications=_number(config.get('max_replications')),
        )
    else:
        raise ValueError(f"Unknown number of replications detector: {detector_type}")
