from crosscheck.logger import get_logger, log_with_context, redact


def test_redact_masks_tokens():
    assert redact("Authorization: Bearer abc.def-123") == "Authorization: Bearer ***"
    assert redact("key=sk-or-v1-0123456789abcdef") == "key=sk-or-***"
    assert redact("token ghp_0123456789abcdefABCDEF used") == "token ghp_*** used"
    assert redact("model=gpt-4 strategy=hybrid") == "model=gpt-4 strategy=hybrid"


def test_log_with_context_drops_none_values():
    records = []
    logger = get_logger()
    sink_id = logger.add(records.append, format="{message}{extra[context]}", level="DEBUG")
    try:
        log_with_context(logger, generation_model="gpt-4", strategy=None).info("Requesting review with Bearer secret-token")
    finally:
        logger.remove(sink_id)

    record = records[0].record
    assert record["extra"]["generation_model"] == "gpt-4"
    assert "strategy" not in record["extra"]
    assert record["message"] == "Requesting review with Bearer ***"
    assert record["extra"]["context"] == " | generation_model=gpt-4"
