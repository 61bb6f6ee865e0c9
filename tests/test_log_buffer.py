import logging

from desktop.voice_client.state.log_buffer import RingBufferHandler


def _logger(name: str, handler: RingBufferHandler) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.handlers = [handler]
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def test_ring_buffer_evicts_oldest_past_capacity() -> None:
    handler = RingBufferHandler()
    logger = _logger("tests.ring.capacity", handler)
    for i in range(105):
        logger.info("entry %d", i)

    entries = handler.entries()
    assert len(entries) == 100
    assert entries[0].message == "entry 5"
    assert entries[-1].message == "entry 104"


def test_levels_and_details_are_recorded() -> None:
    handler = RingBufferHandler(capacity=10)
    logger = _logger("tests.ring.levels", handler)
    logger.info("ready")
    logger.warning("slow")
    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception("failed")

    levels = [entry.level for entry in handler.entries()]
    assert levels == ["info", "warn", "error"]
    last = handler.entries()[-1]
    assert "boom" in (last.details or "")
    assert "ERROR: failed" in last.format()


def test_clear_empties_the_buffer() -> None:
    handler = RingBufferHandler(capacity=10)
    logger = _logger("tests.ring.clear", handler)
    seen = []
    handler.subscribe(seen.append)
    logger.info("one")
    handler.clear()
    assert handler.entries() == []
    assert len(seen) == 1
