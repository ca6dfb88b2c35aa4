import matplotlib
import pytest

matplotlib.use("Agg")

from ..backend.core import PCB


@pytest.fixture
def sample_pcbs():
    """Five processes with staggered arrivals and mixed priorities."""
    return [
        PCB(pid=1, arrival_time=0, burst_time=4, priority=1),
        PCB(pid=2, arrival_time=1, burst_time=3, priority=2),
        PCB(pid=3, arrival_time=2, burst_time=1, priority=3),
        PCB(pid=4, arrival_time=3, burst_time=2, priority=2),
        PCB(pid=5, arrival_time=4, burst_time=5, priority=1),
    ]


@pytest.fixture
def rr_pair():
    return [
        PCB(pid=1, arrival_time=0, burst_time=4),
        PCB(pid=2, arrival_time=0, burst_time=4),
    ]


@pytest.fixture
def priority_trio():
    return [
        PCB(pid=1, arrival_time=0, burst_time=5, priority=3),
        PCB(pid=2, arrival_time=1, burst_time=3, priority=1),
        PCB(pid=3, arrival_time=2, burst_time=2, priority=2),
    ]
