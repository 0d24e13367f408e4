"""Detectors deciding warm-up length, batch size and run length."""

from .base import (
    BatchSizeDetector,
    Detector,
    DetectorState,
    NumReplicationsDetector,
    ReplicationSizeDetector,
    TransientDetector,
)
from .transient import NullTransientDetector, Pawlikowski1990TransientDetector
from .batch_size import DummyBatchSizeDetector, Pawlikowski1990BatchSizeDetector
from .replication_size import (
    DummyReplicationSizeDetector,
    FixedDurationReplicationSizeDetector,
    FixedNumObsReplicationSizeDetector,
)
from .num_replications import Banks2005NumReplicationsDetector, ConstantNumReplicationsDetector
from .factory import (
    make_batch_size_detector,
    make_num_replications_detector,
    make_replication_size_detector,
    make_transient_detector,
)

__all__ = [
    "Detector",
    "DetectorState",
    "TransientDetector",
    "BatchSizeDetector",
    "ReplicationSizeDetector",
    "NumReplicationsDetector",
    "NullTransientDetector",
    "Pawlikowski1990TransientDetector",
    "DummyBatchSizeDetector",
    "Pawlikowski1990BatchSizeDetector",
    "DummyReplicationSizeDetector",
    "FixedNumObsReplicationSizeDetector",
    "FixedDurationReplicationSizeDetector",
    "ConstantNumReplicationsDetector",
    "Banks2005NumReplicationsDetector",
    "make_transient_detector",
    "make_batch_size_detector",
    "make_replication_size_detector",
    "make_num_replications_detector",
]
