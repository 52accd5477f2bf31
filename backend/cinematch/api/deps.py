from functools import lru_cache

from cinematch.core.config import get_settings
from cinematch.services.simulator import SimulationStore, Simulator
from cinematch.services.studio import GeminiStudio


@lru_cache
def get_studio() -> GeminiStudio:
    return GeminiStudio(get_settings())


@lru_cache
def get_store() -> SimulationStore:
    return SimulationStore(capacity=get_settings().MAX_SIMULATIONS)


@lru_cache
def get_simulator() -> Simulator:
    return Simulator(get_studio(), get_store())
