import random
from datetime import datetime

import pytest
import respx

from ollama_agent.engine.controller import ConversationController
from ollama_agent.runtime.ollama_client import OllamaClient
from ollama_agent.runtime.simulator import ResponseSimulator
from ollama_agent.tools.executor import ToolExecutor

OLLAMA_URL = "http://ollama.test"

# Monday afternoon
FIXED_NOW = datetime(2024, 1, 15, 14, 5, 9)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def executor(clock):
    return ToolExecutor(clock=clock)


@pytest.fixture
def ollama_mock():
    """Mocked Ollama server. Routes are added per test."""
    with respx.mock(base_url=OLLAMA_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture
async def controller_factory(executor):
    created = []

    def _factory(**overrides):
        options = {
            "client": OllamaClient(OLLAMA_URL),
            "executor": executor,
            "simulator": ResponseSimulator(rng=random.Random(0)),
            "chunk_delay_ms": 0,
        }
        options.update(overrides)
        ctrl = ConversationController(**options)
        created.append(ctrl)
        return ctrl

    yield _factory

    for ctrl in created:
        await ctrl.close()
