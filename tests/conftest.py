import pytest

import chainlog
from chainlog import Output, Severity


@pytest.fixture(autouse=True)
def memory_output():
    """Route every test's emissions to the in-memory buffer, starting empty."""
    chainlog.reset()
    chainlog.set_level(Severity.DEBUG)
    chainlog.set_output(Output.MEMORY)
    yield
    chainlog.reset()
