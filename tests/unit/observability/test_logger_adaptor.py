from photo_pipeline.observability.logger_adaptor import (
    PhotoLoggerAdapter,
    get_logger,
    request_context,
)


def test_get_logger_is_cached():
    assert get_logger("photo.test") is get_logger("photo.test")
    assert get_logger("photo.test") is not get_logger("photo.other")


def test_process_merges_extra():
    logger = get_logger("photo.test")

    msg, kwargs = logger.process("hello", {"extra": {"photo_id": "p1"}})

    assert msg == "hello"
    assert kwargs == {"photo_id": "p1", "logger_name": "photo.test"}


def test_process_adds_request_id():
    logger = get_logger("photo.test")
    token = request_context.set({"request_id": "req-1"})
    try:
        _, kwargs = logger.process("hello", {})
    finally:
        request_context.reset(token)

    assert kwargs["request_id"] == "req-1"


async def test_process_inside_running_loop_outside_temporal():
    # workflow.info() raises a non-RuntimeError when an event loop is running
    _, kwargs = get_logger("photo.test").process("hello", {})

    assert "workflow_id" not in kwargs
    assert "activity_id" not in kwargs


async def test_logging_from_coroutine_does_not_raise():
    logger = get_logger("photo.test")
    messages = []
    sink_id = logger.logger.add(lambda message: messages.append(message.record))
    try:
        logger.info("catalog row written", extra={"photo_id": "p1"})
    finally:
        logger.logger.remove(sink_id)

    assert [record["message"] for record in messages] == ["catalog row written"]


def test_logs_reach_loguru():
    logger = get_logger("photo.test")
    messages = []
    sink_id = logger.logger.add(lambda message: messages.append(message.record))
    try:
        logger.info("stored original", extra={"photo_id": "p1"})
    finally:
        logger.logger.remove(sink_id)

    [record] = messages
    assert record["message"] == "stored original"
    assert record["extra"]["photo_id"] == "p1"
    assert record["extra"]["logger_name"] == "photo.test"


def test_parse_otel_resource_attributes():
    parsed = PhotoLoggerAdapter._parse_otel_resource_attributes(
        "service.name=photos, deployment.environment = prod,broken"
    )
    assert parsed == {"service.name": "photos", "deployment.environment": "prod"}
    assert PhotoLoggerAdapter._parse_otel_resource_attributes("") == {}
