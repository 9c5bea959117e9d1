import json
import logging

from treasury_intel.config import LoggingConfig
from treasury_intel.utils.logging import JsonlFormatter, log_event, redact_secrets, setup_logging


def test_redact_secrets():
    assert redact_secrets("GET https://g.example/v1?key=AIzaXYZ&alt=json") == (
        "GET https://g.example/v1?key=[REDACTED]&alt=json"
    )
    assert redact_secrets("headers {'x-api-key': 'abc123'}") == "headers {'x-api-key': '[REDACTED]'}"
    assert redact_secrets("token sk-ant-api03abcdefghijk") == "token sk-ant-[REDACTED]"
    assert redact_secrets("nothing secret") == "nothing secret"


def test_jsonl_formatter_emits_event_fields():
    record = logging.LogRecord("treasury_intel.test", logging.WARNING, __file__, 1, "Batch failed", (), None)
    record.event = "classify_batch_failed"
    record.batch = 2

    payload = json.loads(JsonlFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "treasury_intel.test"
    assert payload["message"] == "Batch failed"
    assert payload["event"] == "classify_batch_failed"
    assert payload["batch"] == 2
    assert "lineno" not in payload


def test_setup_logging_writes_jsonl_file(tmp_path):
    cfg = LoggingConfig(console=False, file=True, filename="run.jsonl")
    logger = setup_logging(cfg, tmp_path)

    log_event(logging.getLogger("treasury_intel.store"), "Cache written", event="news_cache_upsert", added=3)
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "run.jsonl").read_text(encoding="utf-8").splitlines()
    payload = json.loads(lines[-1])
    assert payload["event"] == "news_cache_upsert"
    assert payload["added"] == 3

    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
