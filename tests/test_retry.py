import pytest

from chef.errors import ExtractionEmpty, UpstreamRequestFailed
from chef.retry import with_retry


class Flaky:
    def __init__(self, failures: int, exc: Exception | None = None) -> None:
        self.failures = failures
        self.exc = UpstreamRequestFailed("nutrition", "timeout") if exc is None else exc
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return "ok"


class Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_no_retry_on_success() -> None:
    operation = Flaky(0)
    assert await with_retry(operation, retries=3) == "ok"
    assert operation.calls == 1


@pytest.mark.asyncio
async def test_backoff_doubles() -> None:
    operation = Flaky(3)
    sleeps = Sleeps()
    got = await with_retry(operation, retries=3, initial_delay=0.5, sleep=sleeps)
    assert got == "ok"
    assert operation.calls == 4
    assert sleeps.delays == [0.5, 1.0, 2.0]


@pytest.mark.parametrize("retries", (0, 1, 3))
@pytest.mark.asyncio
async def test_gives_up_after_retries(retries: int) -> None:
    operation = Flaky(100)
    with pytest.raises(UpstreamRequestFailed) as exc_info:
        await with_retry(operation, retries=retries, sleep=Sleeps())
    assert exc_info.value is operation.exc
    assert operation.calls == retries + 1


@pytest.mark.asyncio
async def test_other_failures_are_not_retried() -> None:
    operation = Flaky(1, exc=ExtractionEmpty("nothing here"))
    with pytest.raises(ExtractionEmpty):
        await with_retry(operation, retries=3, retry_on=UpstreamRequestFailed)
    assert operation.calls == 1


@pytest.mark.asyncio
async def test_zero_delay_retries_immediately() -> None:
    operation = Flaky(2, exc=ExtractionEmpty("nothing here"))
    sleeps = Sleeps()
    got = await with_retry(operation, retries=2, retry_on=ExtractionEmpty, sleep=sleeps)
    assert got == "ok"
    assert sleeps.delays == [0, 0]


@pytest.mark.parametrize("retries,initial_delay", ((-1, 0), (1, -0.5)))
@pytest.mark.asyncio
async def test_rejects_bad_arguments(retries: int, initial_delay: float) -> None:
    with pytest.raises(ValueError):
        await with_retry(Flaky(0), retries=retries, initial_delay=initial_delay)
