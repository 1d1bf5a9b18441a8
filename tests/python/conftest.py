import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from huntsim.sim.core.config import SimulationConfig  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: long-running simulation scenarios",
    )


@pytest.fixture
def quiet_config() -> SimulationConfig:
    """Default tuning with every population target at zero and no player."""
    config = SimulationConfig(seed=1234)
    config.hare.max_number = 0
    config.wolf.max_number = 0
    config.deer.group_number = 0
    return config

